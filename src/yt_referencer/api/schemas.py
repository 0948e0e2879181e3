"""Request/Response schemas for the FastAPI endpoints."""

from __future__ import annotations

from typing import Annotated, Optional

from pydantic import Field, StrictBool, StrictInt, StringConstraints

from yt_referencer.models.base import CamelModel
from yt_referencer.models.clip import Clip
from yt_referencer.models.tag import MAX_RATING, MIN_RATING, ClipTag, Tag
from yt_referencer.models.user import User

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Seconds = Annotated[StrictInt, Field(ge=0)]
Rating = Annotated[StrictInt, Field(ge=MIN_RATING, le=MAX_RATING)]


# ---------------------------------------------------------------------------
# Clips
# ---------------------------------------------------------------------------


class CreateClipRequest(CamelModel):
    video_id: NonEmptyStr
    title: NonEmptyStr
    thumbnail: NonEmptyStr
    start_time: Seconds
    end_time: Seconds


class UpdateClipRequest(CamelModel):
    title: Optional[NonEmptyStr] = None
    thumbnail: Optional[NonEmptyStr] = None
    start_time: Optional[Seconds] = None
    end_time: Optional[Seconds] = None
    is_public: Optional[StrictBool] = None


class ClipResponse(CamelModel):
    clip: Clip


class ClipListResponse(CamelModel):
    clips: list[Clip]


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


class TagNameRequest(CamelModel):
    name: NonEmptyStr


class TagResponse(CamelModel):
    tag: Tag


class TagListResponse(CamelModel):
    tags: list[Tag]


# ---------------------------------------------------------------------------
# Clip tags
# ---------------------------------------------------------------------------


class ClipTagRequest(CamelModel):
    tag_id: NonEmptyStr
    rating: Rating


class ClipTagDeleteRequest(CamelModel):
    tag_id: NonEmptyStr


class ClipTagListResponse(CamelModel):
    tags: list[ClipTag]


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class SessionResponse(CamelModel):
    user: User
