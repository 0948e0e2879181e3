"""Engine and session factory for the clip store."""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from yt_referencer.config import settings


def make_engine(database_url: str, **options) -> Engine:
    """Build an engine for ``database_url``.

    SQLite connections are shared with FastAPI's worker threads, so they skip
    the same-thread check. Server databases get pre-ping so a restarted
    database does not fail the first request.
    """
    if database_url.startswith("sqlite"):
        options.setdefault("connect_args", {"check_same_thread": False})
    else:
        options.setdefault("pool_pre_ping", True)
    return create_engine(database_url, **options)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = make_engine(settings.database_url)
SessionLocal = make_session_factory(engine)


def get_db():
    """Request-scoped session; closed once the response is sent."""
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Optional[Engine] = None) -> None:
    """Create any missing tables."""
    from yt_referencer.db import sql_models  # noqa: F401  registers the tables
    from yt_referencer.db.base import Base

    Base.metadata.create_all(bind=bind or engine)
