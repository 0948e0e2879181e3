"""Per-clip tag cache: which tags each clip carries, and at what rating."""

from __future__ import annotations

import asyncio
from typing import Iterable, Optional

import structlog

from yt_referencer.models.tag import ClipTag
from yt_referencer.tools.referencer_api import ReferencerClient, StoreError

logger = structlog.get_logger()


class ClipTagCache:
    """Lazily filled map of clip id to its rated tags.

    Lookups for the same clip share one request. After an add or remove the
    clip's entry is fetched again, so the cache mirrors what the store
    actually holds.
    """

    def __init__(self, client: ReferencerClient):
        self._client = client
        self._by_clip: dict[str, list[ClipTag]] = {}
        self._inflight: dict[str, asyncio.Task] = {}
        self.last_exception: Optional[StoreError] = None

    def peek(self, clip_id: str) -> list[ClipTag]:
        return list(self._by_clip.get(clip_id, []))

    def is_cached(self, clip_id: str) -> bool:
        return clip_id in self._by_clip

    def snapshot(self) -> dict[str, list[ClipTag]]:
        return {clip_id: list(tags) for clip_id, tags in self._by_clip.items()}

    async def get(self, clip_id: str) -> list[ClipTag]:
        if clip_id in self._by_clip:
            return self.peek(clip_id)
        return await self._load(clip_id)

    async def prefetch(self, clip_ids: Iterable[str]) -> dict[str, list[ClipTag]]:
        """Fetch every listed clip not yet cached, concurrently."""
        wanted = list(dict.fromkeys(clip_ids))
        missing = [clip_id for clip_id in wanted if clip_id not in self._by_clip]
        if missing:
            logger.info("clip_tags.prefetch", count=len(missing))
            await asyncio.gather(*(self._load(clip_id) for clip_id in missing))
        return {clip_id: self.peek(clip_id) for clip_id in wanted}

    async def refresh(self, clip_id: str) -> list[ClipTag]:
        return await self._load(clip_id, force=True)

    def invalidate(self, clip_id: str) -> None:
        self._by_clip.pop(clip_id, None)

    def forget_tag(self, tag_id: str) -> None:
        """Drop a deleted tag from every cached clip."""
        for clip_id, tags in self._by_clip.items():
            self._by_clip[clip_id] = [tag for tag in tags if tag.id != tag_id]

    async def add_tag(self, clip_id: str, tag_id: str, rating: int) -> bool:
        try:
            await self._client.set_clip_tag(clip_id, tag_id, rating)
        except StoreError as exc:
            self._record_failure("clip_tags.add_failed", clip_id, exc)
            return False
        await self.refresh(clip_id)
        return True

    async def remove_tag(self, clip_id: str, tag_id: str) -> bool:
        try:
            await self._client.remove_clip_tag(clip_id, tag_id)
        except StoreError as exc:
            self._record_failure("clip_tags.remove_failed", clip_id, exc)
            return False
        await self.refresh(clip_id)
        return True

    # --- internals ---

    async def _load(self, clip_id: str, force: bool = False) -> list[ClipTag]:
        task = None if force else self._inflight.get(clip_id)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._fetch(clip_id))
            self._inflight[clip_id] = task
        return await task

    async def _fetch(self, clip_id: str) -> list[ClipTag]:
        current = asyncio.current_task()
        try:
            tags = await self._client.list_clip_tags(clip_id)
        except StoreError as exc:
            self._record_failure("clip_tags.fetch_failed", clip_id, exc)
            return []
        finally:
            if self._inflight.get(clip_id) is current:
                del self._inflight[clip_id]

        # A newer refresh may have started while this one was in flight
        if clip_id not in self._inflight:
            self._by_clip[clip_id] = tags
        return list(tags)

    def _record_failure(self, event: str, clip_id: str, exc: StoreError) -> None:
        self.last_exception = exc
        logger.warning(event, clip_id=clip_id, error=exc.message, status=exc.status_code)
