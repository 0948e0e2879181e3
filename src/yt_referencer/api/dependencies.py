"""FastAPI dependency injection: repository and signed-in user."""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from yt_referencer.config import settings
from yt_referencer.db.connection import get_db
from yt_referencer.db.repository import SqlClipStoreRepo
from yt_referencer.db.sql_models import UserModel

logger = structlog.get_logger()


def get_repo(db: Session = Depends(get_db)) -> SqlClipStoreRepo:
    return SqlClipStoreRepo(db)


def get_session_token(request: Request) -> Optional[str]:
    """Read the session token from the cookie, falling back to a bearer header."""
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    auth_header = request.headers.get("authorization", "")
    scheme, _, credentials = auth_header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def get_current_user(
    token: Optional[str] = Depends(get_session_token),
    repo: SqlClipStoreRepo = Depends(get_repo),
) -> UserModel:
    """Resolve the session to its user or reject with 401."""
    user = repo.get_user_for_token(token) if token else None
    if user is None:
        logger.info("auth.rejected", has_token=bool(token))
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
