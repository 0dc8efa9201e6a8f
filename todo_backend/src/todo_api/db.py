"""
Database engine and session management.

The engine and session factory are process-wide: created at import from the
configured DATABASE_URL, tables are created by the application lifespan on
startup and the engine is disposed on shutdown.
"""
from __future__ import annotations

import logging
import os
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .settings import get_settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def _unicode_lower(value):
    return value.lower() if value is not None else None


def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    # built-in lower() only folds ASCII; text filters must fold like str.lower()
    dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


def _ensure_sqlite_directory(bind: Engine) -> None:
    url = bind.url
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        os.makedirs(os.path.dirname(url.database) or ".", exist_ok=True)


# PUBLIC_INTERFACE
def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Build a SQLAlchemy engine for the given URL. No connection is opened here.

    SQLite specifics:
    - connections may be shared across the request thread pool
    - in-memory databases use a single static connection so every session sees the same data
    - foreign key enforcement and Unicode-aware lower() are set up on every connection
    """
    url = make_url(database_url)
    engine_kwargs: dict = {"echo": echo, "future": True}

    if url.get_backend_name() == "sqlite":
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            engine_kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **engine_kwargs)
    if url.get_backend_name() == "sqlite":
        event.listen(engine, "connect", _configure_sqlite_connection)
    return engine


def create_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


_settings = get_settings()
engine = create_db_engine(_settings.database_url, echo=_settings.sql_echo)
SessionLocal = create_session_factory(engine)


# PUBLIC_INTERFACE
def init_db(bind: Optional[Engine] = None) -> None:
    """
    Create all tables on the given engine (defaults to the process-wide engine).
    For file-backed SQLite the database directory is created first.
    """
    # Import models so they register with Base.metadata
    from . import models  # noqa: F401

    target = bind or engine
    _ensure_sqlite_directory(target)
    Base.metadata.create_all(bind=target)
    logger.info("Database tables created on %s", target.url.get_backend_name())


# PUBLIC_INTERFACE
def get_db() -> Generator[Session, None, None]:
    """Dependency yielding one session per request."""
    session = SessionLocal()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
