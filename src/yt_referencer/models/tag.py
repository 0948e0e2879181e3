"""Pydantic models for tags and clip-tag associations."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from yt_referencer.models.base import CamelModel

MIN_RATING = 1
MAX_RATING = 5


class Tag(CamelModel):
    id: str
    name: str
    created_at: datetime
    updated_at: datetime


class ClipTag(CamelModel):
    """A tag as attached to one clip, carrying that clip's rating."""

    id: str
    name: str
    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)


class TagRef(CamelModel):
    id: str
    name: str


class ClipTagAssociation(CamelModel):
    clip_id: str
    tag_id: str
    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)
    tag: TagRef | None = None
