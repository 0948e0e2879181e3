"""YouTube URL helpers for video ids, thumbnails, embed and watch links."""

from __future__ import annotations

import re
from typing import Optional

_VIDEO_ID_PATTERNS = [
    re.compile(r"(?:youtube\.com/watch\?(?:.*&)?v=)([a-zA-Z0-9_-]{11})"),
    re.compile(r"(?:youtu\.be/)([a-zA-Z0-9_-]{11})"),
    re.compile(r"(?:youtube\.com/embed/)([a-zA-Z0-9_-]{11})"),
    re.compile(r"(?:youtube\.com/shorts/)([a-zA-Z0-9_-]{11})"),
]


def extract_video_id(url: str) -> Optional[str]:
    for pattern in _VIDEO_ID_PATTERNS:
        m = pattern.search(url.strip())
        if m:
            return m.group(1)
    return None


def thumbnail_url(video_id: str) -> str:
    return f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"


def embed_url(video_id: str, start_time: int, end_time: int) -> str:
    """Autoplaying embed limited to the clip's range."""
    return f"https://www.youtube.com/embed/{video_id}?start={int(start_time)}&end={int(end_time)}&autoplay=1"


def watch_url(video_id: str, start_time: int) -> str:
    return f"https://www.youtube.com/watch?v={video_id}&t={int(start_time)}s"
