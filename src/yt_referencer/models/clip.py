"""Pydantic models for saved clips."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from yt_referencer.models.base import CamelModel


class Clip(CamelModel):
    id: str
    video_id: str
    title: str
    thumbnail: str
    start_time: int
    end_time: int
    is_public: bool = False
    share_slug: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time
