"""Database engine and session management.

Environment variables:
  DATABASE_URL  SQLAlchemy URL (default: sqlite:///portal.db)

SQLite is used for local development and tests; production points
DATABASE_URL at the hosted Postgres instance.
"""
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from common.config import get_config

from .models import Base

logger = logging.getLogger(__name__)


def get_database_url() -> str:
    return get_config().database.url


def get_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """Create SQLAlchemy engine."""
    url = url or get_database_url()
    if echo is None:
        echo = get_config().database.echo

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url == "sqlite://":
            # One shared connection, otherwise every session sees an empty DB
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=echo, **kwargs)

        # Enforce foreign keys for SQLite
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(url, echo=echo, pool_pre_ping=True)


def get_session_factory(engine=None) -> sessionmaker:
    """Create a session factory."""
    if engine is None:
        engine = get_engine()
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def get_session(engine=None) -> Generator[Session, None, None]:
    """Context manager for database sessions with auto-commit/rollback."""
    factory = get_session_factory(engine)
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine=None) -> None:
    """Create all tables (for initial setup or testing)."""
    if engine is None:
        engine = get_engine()
    Base.metadata.create_all(engine)
    logger.info("Database tables created.")


# Process-wide factory for request-scoped sessions (portal, provisioning)
_session_factory: Optional[sessionmaker] = None


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request."""
    global _session_factory
    if _session_factory is None:
        _session_factory = get_session_factory()
    session = _session_factory()
    try:
        yield session
    finally:
        session.close()
