"""Database connection and session management."""

import logging
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.services.config import get_settings

logger = logging.getLogger(__name__)


def _is_memory_sqlite(url: URL) -> bool:
    return url.database in (None, "", ":memory:") or url.query.get("mode") == "memory"


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine for the lease database.

    In-memory SQLite lives inside a single connection, so it is shared through
    StaticPool. File SQLite and server databases get a connection per session;
    a rollback in one session must never discard another session's writes.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        if _is_memory_sqlite(url):
            return create_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


_settings = get_settings()
engine = build_engine(_settings.database_url, _settings.database_echo)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Create all lease tables that do not exist yet."""
    from src.models import Base

    target = bind or engine
    Base.metadata.create_all(target)
    logger.info("Database schema ready at %s", target.url.render_as_string(hide_password=True))


__all__ = [
    "build_engine",
    "engine",
    "SessionLocal",
    "get_db",
    "init_db",
]
