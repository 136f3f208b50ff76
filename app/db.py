"""Engine, sessions and connectivity checks for the alert store."""
from __future__ import annotations

import logging
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import get_settings
from app.models.base import Base

logger = logging.getLogger(__name__)

engine: Engine | None = None
SessionLocal: sessionmaker[Session] | None = None


def _engine_kwargs(database_url: str) -> dict[str, object]:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return {"pool_pre_ping": True}
    kwargs: dict[str, object] = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        # Scheduler threads and request handlers must see the same in-memory database.
        kwargs["poolclass"] = StaticPool
    return kwargs


def describe_database(database_url: str | None = None) -> str:
    """Database URL safe for logs (password masked)."""

    url = make_url(database_url or get_settings().database_url)
    return url.render_as_string(hide_password=True)


def init_engine() -> Engine:
    """Create the engine and session factory on first use."""

    global engine, SessionLocal
    if engine is None:
        database_url = get_settings().database_url
        engine = create_engine(database_url, future=True, echo=False, **_engine_kwargs(database_url))
        SessionLocal = sessionmaker(
            bind=engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            future=True,
        )
        logger.info("Database engine initialised", extra={"database": describe_database(database_url)})
    return engine


def get_engine() -> Engine:
    if engine is None:
        return init_engine()
    return engine


def get_sessionmaker() -> sessionmaker[Session]:
    if SessionLocal is None:
        init_engine()
    assert SessionLocal is not None  # for type-checkers
    return SessionLocal


@contextmanager
def session_scope(factory: Callable[[], Session] | None = None) -> Iterator[Session]:
    """Session for work running outside a request, such as scheduled evaluations."""

    session = (factory or get_sessionmaker())()
    try:
        yield session
    finally:
        session.close()


def ping_database() -> bool:
    """Run ``SELECT 1`` against the configured database."""

    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database ping failed", extra={"database": describe_database()})
        return False
    return True


def create_all() -> None:
    """Create herd and alert tables from the ORM metadata (dev/test only)."""

    Base.metadata.create_all(bind=get_engine())


def close_engine() -> None:
    global engine, SessionLocal
    if engine is not None:
        engine.dispose()
        engine = None
        SessionLocal = None


def get_db() -> Generator[Session, None, None]:
    """Provide a database session for FastAPI dependencies."""

    with session_scope() as session:
        yield session


__all__ = [
    "Base",
    "SessionLocal",
    "engine",
    "close_engine",
    "create_all",
    "describe_database",
    "get_db",
    "get_engine",
    "get_sessionmaker",
    "init_engine",
    "ping_database",
    "session_scope",
]
