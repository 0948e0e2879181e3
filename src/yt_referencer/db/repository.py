import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .sql_models import ClipModel, ClipTagModel, SessionModel, TagModel, UserModel


class DuplicateTagError(Exception):
    """Raised when a user already owns a tag with the requested name."""


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class SqlClipStoreRepo:
    """Clip, tag and clip-tag persistence scoped to one user at a time.

    Every lookup filters by ``user_id`` so a foreign id reads as missing.
    """

    def __init__(self, db: Session):
        self.db = db

    # --- Sessions ---

    def get_user_for_token(self, token: str) -> Optional[UserModel]:
        session = self.db.get(SessionModel, token)
        if session is None:
            return None
        if _as_utc(session.expires_at) <= datetime.now(timezone.utc):
            return None
        return session.user

    def delete_session(self, token: str) -> bool:
        deleted = self.db.query(SessionModel).filter(SessionModel.token == token).delete()
        self.db.commit()
        return deleted > 0

    # --- Clips ---

    def list_clips(self, user_id: str) -> list[ClipModel]:
        return (
            self.db.query(ClipModel)
            .filter(ClipModel.user_id == user_id)
            .order_by(ClipModel.created_at.desc())
            .all()
        )

    def get_clip(self, user_id: str, clip_id: str) -> Optional[ClipModel]:
        return (
            self.db.query(ClipModel)
            .filter(ClipModel.id == clip_id, ClipModel.user_id == user_id)
            .first()
        )

    def get_public_clip(self, share_slug: str) -> Optional[ClipModel]:
        return (
            self.db.query(ClipModel)
            .filter(ClipModel.share_slug == share_slug, ClipModel.is_public.is_(True))
            .first()
        )

    def create_clip(self, user_id: str, clip_data: dict) -> ClipModel:
        clip = ClipModel(user_id=user_id, **clip_data)
        self.db.add(clip)
        self.db.commit()
        self.db.refresh(clip)
        return clip

    def update_clip(self, clip: ClipModel, changes: dict, slug_length: int) -> ClipModel:
        for key, value in changes.items():
            setattr(clip, key, value)
        if clip.is_public and not clip.share_slug:
            clip.share_slug = secrets.token_urlsafe(slug_length)[:slug_length]
        self.db.commit()
        self.db.refresh(clip)
        return clip

    def delete_clip(self, user_id: str, clip_id: str) -> bool:
        clip = self.get_clip(user_id, clip_id)
        if clip is None:
            return False
        self.db.delete(clip)
        self.db.commit()
        return True

    # --- Tags ---

    def list_tags(self, user_id: str) -> list[TagModel]:
        return (
            self.db.query(TagModel)
            .filter(TagModel.user_id == user_id)
            .order_by(TagModel.name)
            .all()
        )

    def get_tag(self, user_id: str, tag_id: str) -> Optional[TagModel]:
        return (
            self.db.query(TagModel)
            .filter(TagModel.id == tag_id, TagModel.user_id == user_id)
            .first()
        )

    def create_tag(self, user_id: str, name: str) -> TagModel:
        tag = TagModel(user_id=user_id, name=name)
        self.db.add(tag)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateTagError(name) from e
        self.db.refresh(tag)
        return tag

    def rename_tag(self, tag: TagModel, name: str) -> TagModel:
        tag.name = name
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateTagError(name) from e
        self.db.refresh(tag)
        return tag

    def delete_tag(self, tag: TagModel) -> None:
        self.db.delete(tag)
        self.db.commit()

    # --- Clip tags ---

    def list_clip_tags(self, clip_id: str) -> list[ClipTagModel]:
        return (
            self.db.query(ClipTagModel)
            .filter(ClipTagModel.clip_id == clip_id)
            .order_by(ClipTagModel.created_at)
            .all()
        )

    def upsert_clip_tag(self, clip_id: str, tag_id: str, rating: int) -> ClipTagModel:
        clip_tag = (
            self.db.query(ClipTagModel)
            .filter(ClipTagModel.clip_id == clip_id, ClipTagModel.tag_id == tag_id)
            .first()
        )
        if clip_tag is None:
            clip_tag = ClipTagModel(clip_id=clip_id, tag_id=tag_id, rating=rating)
            self.db.add(clip_tag)
        else:
            clip_tag.rating = rating
        self.db.commit()
        self.db.refresh(clip_tag)
        return clip_tag

    def delete_clip_tag(self, clip_id: str, tag_id: str) -> bool:
        deleted = (
            self.db.query(ClipTagModel)
            .filter(ClipTagModel.clip_id == clip_id, ClipTagModel.tag_id == tag_id)
            .delete()
        )
        self.db.commit()
        return deleted > 0
