"""Async HTTP client for the clip and tag store."""

from __future__ import annotations

from typing import Any, Callable, Optional, TypeVar

import httpx
import structlog
from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from yt_referencer.config import settings
from yt_referencer.models.clip import Clip
from yt_referencer.models.tag import ClipTag, ClipTagAssociation, Tag
from yt_referencer.models.user import User

logger = structlog.get_logger()

T = TypeVar("T")


class StoreError(Exception):
    """A store call failed. ``status_code`` is None for transport failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UnauthorizedError(StoreError):
    """The store rejected the session; the caller should prompt sign-in."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status_code=401)


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        data = response.json()
    except ValueError:
        return fallback
    if isinstance(data, dict) and isinstance(data.get("error"), str):
        return data["error"]
    return fallback


class ReferencerClient:
    """Thin wrapper over ``httpx.AsyncClient``, one method per store endpoint.

    Every method raises ``UnauthorizedError`` on 401 and ``StoreError`` on any
    other failure, so callers can map them to "please sign in" versus a
    generic "failed to ..." notice.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        session_token: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        cookies = {settings.session_cookie_name: session_token} if session_token else None
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            cookies=cookies,
            timeout=timeout or settings.request_timeout_sec,
            transport=transport,
        )

    async def __aenter__(self) -> "ReferencerClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        json: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        try:
            response = await self._http.request(method, path, json=json)
        except httpx.HTTPError as exc:
            logger.warning("referencer_api.transport_error", method=method, path=path, error=str(exc))
            raise StoreError(f"Failed to {action}") from exc

        if response.status_code == 401:
            logger.info("referencer_api.unauthorized", method=method, path=path)
            raise UnauthorizedError()
        if response.is_error:
            message = _error_message(response, f"Failed to {action}")
            logger.warning(
                "referencer_api.request_failed",
                method=method,
                path=path,
                status=response.status_code,
                error=message,
            )
            raise StoreError(message, status_code=response.status_code)
        return response

    async def _call(
        self,
        method: str,
        path: str,
        action: str,
        parse: Optional[Callable[[Any], T]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> Optional[T]:
        """Send a request and turn its body into models with ``parse``.

        A 2xx body that is not JSON or not the expected shape is a failed
        call like any other.
        """
        response = await self._request(method, path, action, json=json)
        if parse is None:
            return None
        try:
            return parse(response.json())
        except (ValueError, KeyError, TypeError, ValidationError) as exc:
            logger.warning(
                "referencer_api.bad_response",
                method=method,
                path=path,
                status=response.status_code,
                error=str(exc),
            )
            raise StoreError(f"Failed to {action}", status_code=response.status_code) from exc

    # --- Clips ---

    async def list_clips(self) -> list[Clip]:
        return await self._call(
            "GET", "/clips", "fetch clips",
            lambda data: [Clip.model_validate(c) for c in data["clips"]],
        )

    async def get_clip(self, clip_id: str) -> Clip:
        return await self._call(
            "GET", f"/clips/{clip_id}", "fetch clip",
            lambda data: Clip.model_validate(data["clip"]),
        )

    async def get_shared_clip(self, share_slug: str) -> Clip:
        return await self._call(
            "GET", f"/share/{share_slug}", "fetch shared clip",
            lambda data: Clip.model_validate(data["clip"]),
        )

    async def create_clip(
        self,
        video_id: str,
        title: str,
        thumbnail: str,
        start_time: int,
        end_time: int,
    ) -> Clip:
        payload = {
            "videoId": video_id,
            "title": title,
            "thumbnail": thumbnail,
            "startTime": start_time,
            "endTime": end_time,
        }
        return await self._call("POST", "/clips", "save clip", Clip.model_validate, json=payload)

    async def update_clip(self, clip_id: str, **fields: Any) -> Clip:
        """PATCH only the given fields (snake_case names, e.g. ``is_public``)."""
        payload = {to_camel(key): value for key, value in fields.items()}
        return await self._call(
            "PATCH", f"/clips/{clip_id}", "update clip",
            lambda data: Clip.model_validate(data["clip"]),
            json=payload,
        )

    async def delete_clip(self, clip_id: str) -> None:
        await self._call("DELETE", f"/clips/{clip_id}", "delete clip")

    # --- Tags ---

    async def list_tags(self) -> list[Tag]:
        return await self._call(
            "GET", "/tags", "fetch tags",
            lambda data: [Tag.model_validate(t) for t in data["tags"]],
        )

    async def create_tag(self, name: str) -> Tag:
        return await self._call("POST", "/tags", "create tag", Tag.model_validate, json={"name": name})

    async def update_tag(self, tag_id: str, name: str) -> Tag:
        return await self._call(
            "PATCH", f"/tags/{tag_id}", "update tag",
            lambda data: Tag.model_validate(data["tag"]),
            json={"name": name},
        )

    async def delete_tag(self, tag_id: str) -> None:
        await self._call("DELETE", f"/tags/{tag_id}", "delete tag")

    # --- Clip tags ---

    async def list_clip_tags(self, clip_id: str) -> list[ClipTag]:
        return await self._call(
            "GET", f"/clips/{clip_id}/tags", "fetch clip tags",
            lambda data: [ClipTag.model_validate(t) for t in data["tags"]],
        )

    async def set_clip_tag(self, clip_id: str, tag_id: str, rating: int) -> ClipTagAssociation:
        return await self._call(
            "POST", f"/clips/{clip_id}/tags", "add tag to clip",
            ClipTagAssociation.model_validate,
            json={"tagId": tag_id, "rating": rating},
        )

    async def remove_clip_tag(self, clip_id: str, tag_id: str) -> None:
        await self._call(
            "DELETE", f"/clips/{clip_id}/tags", "remove tag from clip",
            json={"tagId": tag_id},
        )

    # --- Session ---

    async def get_session(self) -> User:
        return await self._call(
            "GET", "/session", "fetch session",
            lambda data: User.model_validate(data["user"]),
        )
