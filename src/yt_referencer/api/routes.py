"""FastAPI route handlers for the clip and tag store."""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response

from yt_referencer.api.dependencies import get_current_user, get_repo, get_session_token
from yt_referencer.api.schemas import (
    ClipListResponse,
    ClipResponse,
    ClipTagDeleteRequest,
    ClipTagListResponse,
    ClipTagRequest,
    CreateClipRequest,
    SessionResponse,
    TagListResponse,
    TagNameRequest,
    TagResponse,
    UpdateClipRequest,
)
from yt_referencer.config import settings
from yt_referencer.db.repository import DuplicateTagError, SqlClipStoreRepo
from yt_referencer.db.sql_models import ClipModel, UserModel
from yt_referencer.models.clip import Clip
from yt_referencer.models.tag import ClipTag, ClipTagAssociation, Tag, TagRef
from yt_referencer.models.user import User

logger = structlog.get_logger()

router = APIRouter(prefix="/api")

_DUPLICATE_TAG = "A tag with this name already exists."
_BAD_RANGE = "endTime must be greater than startTime"


def _owned_clip(repo: SqlClipStoreRepo, user: UserModel, clip_id: str) -> ClipModel:
    clip = repo.get_clip(user.id, clip_id)
    if clip is None:
        raise HTTPException(status_code=404, detail="Clip not found")
    return clip


# ---------------------------------------------------------------------------
# Clips
# ---------------------------------------------------------------------------


@router.get("/clips", response_model=ClipListResponse)
def list_clips(
    user: UserModel = Depends(get_current_user),
    repo: SqlClipStoreRepo = Depends(get_repo),
):
    """List the user's clips, newest first."""
    clips = repo.list_clips(user.id)
    return ClipListResponse(clips=[Clip.model_validate(c) for c in clips])


@router.post("/clips", response_model=Clip)
def create_clip(
    request: CreateClipRequest,
    user: UserModel = Depends(get_current_user),
    repo: SqlClipStoreRepo = Depends(get_repo),
):
    """Save a clip captured by the extension."""
    if request.end_time <= request.start_time:
        raise HTTPException(status_code=400, detail=_BAD_RANGE)

    clip = repo.create_clip(user.id, request.model_dump())
    logger.info(
        "clips.created",
        clip_id=clip.id,
        video_id=clip.video_id,
        start_time=clip.start_time,
        end_time=clip.end_time,
    )
    return Clip.model_validate(clip)


@router.get("/clips/{clip_id}", response_model=ClipResponse)
def get_clip(
    clip_id: str,
    user: UserModel = Depends(get_current_user),
    repo: SqlClipStoreRepo = Depends(get_repo),
):
    clip = _owned_clip(repo, user, clip_id)
    return ClipResponse(clip=Clip.model_validate(clip))


@router.patch("/clips/{clip_id}", response_model=ClipResponse)
def update_clip(
    clip_id: str,
    request: UpdateClipRequest,
    user: UserModel = Depends(get_current_user),
    repo: SqlClipStoreRepo = Depends(get_repo),
):
    """Apply a partial update; the resulting range is checked against stored values."""
    clip = _owned_clip(repo, user, clip_id)
    changes = request.model_dump(exclude_unset=True, exclude_none=True)

    final_start = changes.get("start_time", clip.start_time)
    final_end = changes.get("end_time", clip.end_time)
    if final_end <= final_start:
        raise HTTPException(status_code=400, detail=_BAD_RANGE)

    clip = repo.update_clip(clip, changes, slug_length=settings.share_slug_length)
    logger.info("clips.updated", clip_id=clip.id, fields=sorted(changes))
    return ClipResponse(clip=Clip.model_validate(clip))


@router.delete("/clips/{clip_id}", status_code=204)
def delete_clip(
    clip_id: str,
    user: UserModel = Depends(get_current_user),
    repo: SqlClipStoreRepo = Depends(get_repo),
):
    if not repo.delete_clip(user.id, clip_id):
        raise HTTPException(status_code=404, detail="Clip not found")
    logger.info("clips.deleted", clip_id=clip_id)
    return Response(status_code=204)


@router.get("/share/{share_slug}", response_model=ClipResponse)
def get_shared_clip(share_slug: str, repo: SqlClipStoreRepo = Depends(get_repo)):
    """Public view of a shared clip. No session required."""
    clip = repo.get_public_clip(share_slug)
    if clip is None:
        raise HTTPException(status_code=404, detail="Clip not found")
    return ClipResponse(clip=Clip.model_validate(clip))


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


@router.get("/tags", response_model=TagListResponse)
def list_tags(
    user: UserModel = Depends(get_current_user),
    repo: SqlClipStoreRepo = Depends(get_repo),
):
    tags = repo.list_tags(user.id)
    return TagListResponse(tags=[Tag.model_validate(t) for t in tags])


@router.post("/tags", response_model=Tag, status_code=201)
def create_tag(
    request: TagNameRequest,
    user: UserModel = Depends(get_current_user),
    repo: SqlClipStoreRepo = Depends(get_repo),
):
    try:
        tag = repo.create_tag(user.id, request.name)
    except DuplicateTagError:
        raise HTTPException(status_code=409, detail=_DUPLICATE_TAG)

    logger.info("tags.created", tag_id=tag.id, name=tag.name)
    return Tag.model_validate(tag)


@router.get("/tags/{tag_id}", response_model=TagResponse)
def get_tag(
    tag_id: str,
    user: UserModel = Depends(get_current_user),
    repo: SqlClipStoreRepo = Depends(get_repo),
):
    tag = repo.get_tag(user.id, tag_id)
    if tag is None:
        raise HTTPException(status_code=404, detail="Tag not found")
    return TagResponse(tag=Tag.model_validate(tag))


@router.patch("/tags/{tag_id}", response_model=TagResponse)
def update_tag(
    tag_id: str,
    request: TagNameRequest,
    user: UserModel = Depends(get_current_user),
    repo: SqlClipStoreRepo = Depends(get_repo),
):
    tag = repo.get_tag(user.id, tag_id)
    if tag is None:
        raise HTTPException(status_code=404, detail="Tag not found")

    try:
        tag = repo.rename_tag(tag, request.name)
    except DuplicateTagError:
        raise HTTPException(status_code=409, detail=_DUPLICATE_TAG)

    logger.info("tags.renamed", tag_id=tag.id, name=tag.name)
    return TagResponse(tag=Tag.model_validate(tag))


@router.delete("/tags/{tag_id}", status_code=204)
def delete_tag(
    tag_id: str,
    user: UserModel = Depends(get_current_user),
    repo: SqlClipStoreRepo = Depends(get_repo),
):
    tag = repo.get_tag(user.id, tag_id)
    if tag is None:
        raise HTTPException(status_code=404, detail="Tag not found")

    repo.delete_tag(tag)
    logger.info("tags.deleted", tag_id=tag_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Clip tags
# ---------------------------------------------------------------------------


@router.get("/clips/{clip_id}/tags", response_model=ClipTagListResponse)
def list_clip_tags(
    clip_id: str,
    user: UserModel = Depends(get_current_user),
    repo: SqlClipStoreRepo = Depends(get_repo),
):
    clip = _owned_clip(repo, user, clip_id)
    tags = [
        ClipTag(id=ct.tag.id, name=ct.tag.name, rating=ct.rating)
        for ct in repo.list_clip_tags(clip.id)
    ]
    return ClipTagListResponse(tags=tags)


@router.post("/clips/{clip_id}/tags", response_model=ClipTagAssociation, status_code=201)
def upsert_clip_tag(
    clip_id: str,
    request: ClipTagRequest,
    user: UserModel = Depends(get_current_user),
    repo: SqlClipStoreRepo = Depends(get_repo),
):
    """Attach a tag to a clip, or overwrite the rating if already attached."""
    clip = _owned_clip(repo, user, clip_id)
    tag = repo.get_tag(user.id, request.tag_id)
    if tag is None:
        raise HTTPException(status_code=404, detail="Tag not found")

    clip_tag = repo.upsert_clip_tag(clip.id, tag.id, request.rating)
    logger.info("clip_tags.upserted", clip_id=clip.id, tag_id=tag.id, rating=clip_tag.rating)
    return ClipTagAssociation(
        clip_id=clip_tag.clip_id,
        tag_id=clip_tag.tag_id,
        rating=clip_tag.rating,
        tag=TagRef(id=tag.id, name=tag.name),
    )


@router.delete("/clips/{clip_id}/tags", status_code=204)
def delete_clip_tag(
    clip_id: str,
    request: ClipTagDeleteRequest,
    user: UserModel = Depends(get_current_user),
    repo: SqlClipStoreRepo = Depends(get_repo),
):
    clip = _owned_clip(repo, user, clip_id)
    if not repo.delete_clip_tag(clip.id, request.tag_id):
        raise HTTPException(status_code=404, detail="Tag association not found")

    logger.info("clip_tags.deleted", clip_id=clip.id, tag_id=request.tag_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@router.get("/session", response_model=SessionResponse)
def get_session(user: UserModel = Depends(get_current_user)):
    return SessionResponse(user=User.model_validate(user))


@router.post("/session/sign-out", status_code=204)
def sign_out(
    token: Optional[str] = Depends(get_session_token),
    repo: SqlClipStoreRepo = Depends(get_repo),
):
    if token:
        repo.delete_session(token)
    response = Response(status_code=204)
    response.delete_cookie(settings.session_cookie_name)
    return response
