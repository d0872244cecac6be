"""
Database helpers shared by the cafeqr services.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import AppConfig

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_session_factory: sessionmaker | None = None
_scoped_session: scoped_session | None = None

SLOW_QUERY_SECONDS = 1.0


def init_engine(config: AppConfig) -> Engine:
    """
    Initialize a SQLAlchemy engine and session factory using the given config.

    The engine is stored as a module-level singleton so that both Flask apps
    can safely reuse the same connection pool inside a container.
    """
    global _engine, _session_factory, _scoped_session

    if _engine is None:
        database_url = config.database_url
        engine_kwargs: dict[str, Any] = {
            "pool_pre_ping": True,
            "future": True,
        }

        if database_url.startswith("sqlite"):
            engine_kwargs.update(
                {
                    "connect_args": {"check_same_thread": False},
                    "poolclass": StaticPool,
                    "pool_pre_ping": False,
                }
            )
        else:
            engine_kwargs.update({"pool_size": 10, "max_overflow": 20, "pool_recycle": 3600})

        _engine = create_engine(database_url, **engine_kwargs)

        @event.listens_for(_engine, "before_cursor_execute")
        def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            conn.info.setdefault("query_start_time", []).append(time.time())

        @event.listens_for(_engine, "after_cursor_execute")
        def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            total = time.time() - conn.info["query_start_time"].pop(-1)
            if total > SLOW_QUERY_SECONDS:
                logger.warning(f"Slow query detected ({total:.2f}s): {statement[:200]}...")

        _session_factory = sessionmaker(
            bind=_engine, autoflush=False, autocommit=False, expire_on_commit=False
        )
        _scoped_session = scoped_session(_session_factory)

    return _engine


def reset_engine() -> None:
    """Dispose the engine singleton so the next init_engine call builds a new one."""
    global _engine, _session_factory, _scoped_session

    if _scoped_session is not None:
        _scoped_session.remove()
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
    _scoped_session = None


def init_db(metadata) -> None:
    """
    Ensure all tables declared on the provided metadata exist in the database.
    """
    if _engine is None:
        raise RuntimeError("Database engine not initialized. Call init_engine first.")

    try:
        metadata.create_all(_engine)
        logger.info("Database schema created successfully")
    except OperationalError as exc:
        logger.warning("Schema creation warning: %s", exc)


@contextmanager
def get_session() -> Iterator[Session]:
    """
    Provide a transactional scope around a series of operations.

    Yields a session and automatically rolls back when an exception occurs. It
    commits by default and always ensures the session is removed from the scoped
    registry afterwards.
    """
    if _scoped_session is None:
        raise RuntimeError("Session factory unavailable. Call init_engine first.")

    session: Session = _scoped_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        _scoped_session.remove()

