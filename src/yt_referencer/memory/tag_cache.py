"""Shared tag list for every dashboard view, fetched once and kept in sync.

One ``TagCache`` is created per client session and handed to each consumer.
Consumers subscribe for change notifications; the first subscriber triggers
the list fetch and later ones piggyback on it. Create, rename and delete go
through the store first and touch the cached list only on success.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from yt_referencer.models.tag import Tag
from yt_referencer.tools.referencer_api import ReferencerClient, StoreError

logger = structlog.get_logger()


@dataclass(frozen=True)
class TagCacheState:
    tags: tuple[Tag, ...] = ()
    loading: bool = False
    error: Optional[str] = None
    initialized: bool = False


Subscriber = Callable[[TagCacheState], None]


class TagCache:
    def __init__(self, client: ReferencerClient):
        self._client = client
        self._tags: list[Tag] = []
        self._loading = False
        self._error: Optional[str] = None
        self._initialized = False
        self._subscribers: set[Subscriber] = set()
        self._fetch_task: Optional[asyncio.Task] = None
        self.last_exception: Optional[StoreError] = None

    @property
    def state(self) -> TagCacheState:
        return TagCacheState(
            tags=tuple(self._tags),
            loading=self._loading,
            error=self._error,
            initialized=self._initialized,
        )

    @property
    def tags(self) -> list[Tag]:
        return list(self._tags)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register for notifications; returns the matching unsubscribe.

        Must be called from a running event loop, since the first
        subscription schedules the list fetch.
        """
        self._subscribers.add(callback)
        if not self._initialized and not self._loading:
            self._start_fetch()

        def unsubscribe() -> None:
            self._subscribers.discard(callback)

        return unsubscribe

    async def ensure_loaded(self) -> TagCacheState:
        """Wait for the tag list, joining the in-flight fetch if there is one."""
        if self._initialized:
            return self.state
        task = self._fetch_task if self._loading and self._fetch_task else self._start_fetch()
        await task
        return self.state

    async def create_tag(self, name: str) -> Optional[Tag]:
        name = (name or "").strip()
        if not name:
            self._fail(StoreError("Tag name is required"))
            return None

        self._clear_error()
        try:
            tag = await self._client.create_tag(name)
        except StoreError as exc:
            self._fail(exc)
            return None

        self._tags = [*self._tags, tag]
        logger.info("tag_cache.created", tag_id=tag.id, name=tag.name)
        self._notify()
        return tag

    async def update_tag(self, tag_id: str, name: str) -> bool:
        name = (name or "").strip()
        if not name:
            self._fail(StoreError("Tag name is required"))
            return False

        self._clear_error()
        try:
            updated = await self._client.update_tag(tag_id, name)
        except StoreError as exc:
            self._fail(exc)
            return False

        self._tags = [updated if tag.id == tag_id else tag for tag in self._tags]
        logger.info("tag_cache.updated", tag_id=tag_id, name=updated.name)
        self._notify()
        return True

    async def delete_tag(self, tag_id: str) -> bool:
        self._clear_error()
        try:
            await self._client.delete_tag(tag_id)
        except StoreError as exc:
            self._fail(exc)
            return False

        self._tags = [tag for tag in self._tags if tag.id != tag_id]
        logger.info("tag_cache.deleted", tag_id=tag_id)
        self._notify()
        return True

    # --- internals ---

    def _start_fetch(self) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._fetch())
        self._fetch_task = task
        self._loading = True
        self._error = None
        self._notify()
        return task

    async def _fetch(self) -> None:
        try:
            tags = await self._client.list_tags()
        except StoreError as exc:
            self._error = exc.message
            self.last_exception = exc
            logger.warning("tag_cache.fetch_failed", error=exc.message, status=exc.status_code)
        else:
            self._tags = tags
            self._initialized = True
            logger.info("tag_cache.loaded", count=len(tags))
        finally:
            self._loading = False
            self._fetch_task = None
            self._notify()

    def _clear_error(self) -> None:
        self._error = None
        self.last_exception = None
        self._notify()

    def _fail(self, exc: StoreError) -> None:
        self._error = exc.message
        self.last_exception = exc
        logger.warning("tag_cache.mutation_failed", error=exc.message, status=exc.status_code)
        self._notify()

    def _notify(self) -> None:
        state = self.state
        for callback in list(self._subscribers):
            try:
                callback(state)
            except Exception:
                logger.exception("tag_cache.subscriber_failed")
