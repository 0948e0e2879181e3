import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from yt_referencer.db.base import Base


def utc_now():
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class UserModel(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    sessions = relationship("SessionModel", back_populates="user", cascade="all, delete-orphan")
    clips = relationship("ClipModel", back_populates="user", cascade="all, delete-orphan")
    tags = relationship("TagModel", back_populates="user", cascade="all, delete-orphan")


class SessionModel(Base):
    """A login session. Rows are written by the auth provider."""

    __tablename__ = "sessions"

    token = Column(String, primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    user = relationship("UserModel", back_populates="sessions")


class ClipModel(Base):
    __tablename__ = "clips"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(String, nullable=False)
    title = Column(String, nullable=False)
    thumbnail = Column(String, nullable=False)
    start_time = Column(Integer, nullable=False)
    end_time = Column(Integer, nullable=False)
    is_public = Column(Boolean, nullable=False, default=False)
    share_slug = Column(String, unique=True, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    user = relationship("UserModel", back_populates="clips")
    clip_tags = relationship("ClipTagModel", back_populates="clip", cascade="all, delete-orphan")


class TagModel(Base):
    __tablename__ = "tags"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_tags_user_name"),)

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    user = relationship("UserModel", back_populates="tags")
    clip_tags = relationship("ClipTagModel", back_populates="tag", cascade="all, delete-orphan")


class ClipTagModel(Base):
    """One rated tag on one clip. Unique per (clip, tag)."""

    __tablename__ = "clip_tags"
    __table_args__ = (UniqueConstraint("clip_id", "tag_id", name="uq_clip_tags_clip_tag"),)

    id = Column(String(36), primary_key=True, default=new_id)
    clip_id = Column(String(36), ForeignKey("clips.id", ondelete="CASCADE"), nullable=False, index=True)
    tag_id = Column(String(36), ForeignKey("tags.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    clip = relationship("ClipModel", back_populates="clip_tags")
    tag = relationship("TagModel", back_populates="clip_tags")
