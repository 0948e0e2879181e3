"""Editing sessions that end in a save: the popup's new clip and the dashboard's edit."""

from __future__ import annotations

import math
from typing import Any, Optional

import structlog

from yt_referencer.editing.time_range import (
    ClipInterval,
    ClipIntervalError,
    TimeRangeEditor,
    validate_interval,
)
from yt_referencer.models.clip import Clip
from yt_referencer.tools.referencer_api import ReferencerClient
from yt_referencer.tools.youtube import thumbnail_url

logger = structlog.get_logger()

# Upper bound for dashboard edits when the source video's length is unknown
_UNKNOWN_DURATION_HEADROOM_SEC = 3600


class ClipDraft:
    """A clip captured from the page the extension is looking at, not yet saved."""

    def __init__(self, video_id: str, title: str, thumbnail: str, editor: TimeRangeEditor):
        self.video_id = video_id
        self.title = title
        self.thumbnail = thumbnail
        self.editor = editor

    @classmethod
    def from_video(cls, video_id: str, title: str, current_time: float, duration: float) -> "ClipDraft":
        """Start at the playhead and run to the end of the video.

        Raises ``ClipIntervalError`` when the video has no usable length yet
        (live streams, metadata not loaded).
        """
        end = math.floor(duration) if math.isfinite(duration) else 0
        if end < 1:
            raise ClipIntervalError("Video duration is not available")
        playhead = math.floor(current_time) if math.isfinite(current_time) else 0
        start = min(max(0, playhead), end - 1)
        return cls(
            video_id=video_id,
            title=(title or "").strip() or "Untitled",
            thumbnail=thumbnail_url(video_id),
            editor=TimeRangeEditor(ClipInterval(start, end), max_duration=end),
        )

    async def save(self, client: ReferencerClient) -> Clip:
        """Validate and POST. Store errors propagate to the caller."""
        interval = self.editor.interval
        validate_interval(interval)
        clip = await client.create_clip(
            video_id=self.video_id,
            title=self.title,
            thumbnail=self.thumbnail,
            start_time=interval.start_time,
            end_time=interval.end_time,
        )
        logger.info("clip_draft.saved", clip_id=clip.id, video_id=self.video_id)
        return clip


class ClipEditSession:
    """The dashboard's edit form for one saved clip."""

    def __init__(self, clip: Clip, max_duration: Optional[int] = None):
        self.clip = clip
        self._reset(max_duration)

    def _reset(self, max_duration: Optional[int] = None) -> None:
        clip = self.clip
        if max_duration is None:
            max_duration = clip.end_time + _UNKNOWN_DURATION_HEADROOM_SEC
        self.editor = TimeRangeEditor(ClipInterval(clip.start_time, clip.end_time), max_duration)
        self.title = clip.title
        self.is_public = clip.is_public

    def changes(self) -> dict[str, Any]:
        interval = self.editor.interval
        edited = {
            "title": self.title,
            "start_time": interval.start_time,
            "end_time": interval.end_time,
            "is_public": self.is_public,
        }
        return {key: value for key, value in edited.items() if getattr(self.clip, key) != value}

    async def save(self, client: ReferencerClient) -> Clip:
        """Validate and PATCH only what changed; returns the stored clip."""
        validate_interval(self.editor.interval)
        changes = self.changes()
        if not changes:
            return self.clip

        self.clip = await client.update_clip(self.clip.id, **changes)
        logger.info("clip_edit.saved", clip_id=self.clip.id, fields=sorted(changes))
        self._reset(self.editor.max_duration)
        return self.clip

    async def delete(self, client: ReferencerClient) -> None:
        await client.delete_clip(self.clip.id)
        logger.info("clip_edit.deleted", clip_id=self.clip.id)
