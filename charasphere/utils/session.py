"""SQLAlchemy session management for the CharaSphere database.

Production points DATABASE_URL at the hosted Postgres instance; local runs and
tests use a SQLite file. Services open short-lived sessions with get_session().
"""

from __future__ import annotations

import atexit
import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.orm import Session, sessionmaker

from charasphere.utils.models import Base

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///data/charasphere.db"


class SessionConfig:
    """Connection settings for the engine, normalised to sane values."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        pool_size: int = 6,
        timeout_seconds: int = 30,
        busy_timeout_ms: int = 5000,
    ):
        self.url: URL = make_url(database_url or DEFAULT_DATABASE_URL)
        self.pool_size = pool_size if pool_size > 0 else 6
        self.timeout_seconds = timeout_seconds if timeout_seconds > 0 else 30
        self.busy_timeout_ms = busy_timeout_ms if busy_timeout_ms > 0 else 5000

    @property
    def backend(self) -> str:
        return self.url.get_backend_name()

    @property
    def is_sqlite(self) -> bool:
        return self.backend == "sqlite"

    def engine_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "pool_size": self.pool_size,
            "pool_timeout": self.timeout_seconds,
            "pool_pre_ping": True,
        }
        if self.backend == "postgresql":
            kwargs["connect_args"] = {"connect_timeout": self.timeout_seconds}
        return kwargs


_config: Optional[SessionConfig] = None
_engine = None
_session_factory = None


def _sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute(f"PRAGMA busy_timeout={_get_config().busy_timeout_ms}")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def _get_config() -> SessionConfig:
    global _config
    if _config is None:
        logger.warning("Session not explicitly initialized; reading DATABASE_URL")
        _config = SessionConfig(os.getenv("DATABASE_URL"))
    return _config


def get_database_url() -> str:
    return _get_config().url.render_as_string(hide_password=False)


def get_engine():
    """Get or create the SQLAlchemy engine."""
    global _engine
    if _engine is None:
        config = _get_config()
        if config.is_sqlite and config.url.database not in (None, "", ":memory:"):
            os.makedirs(os.path.dirname(config.url.database) or ".", exist_ok=True)

        _engine = create_engine(config.url, **config.engine_kwargs())
        if config.is_sqlite:
            event.listen(_engine, "connect", _sqlite_pragmas)
        logger.info(
            f"Engine created for {config.backend} "
            f"(pool_size={config.pool_size}, timeout={config.timeout_seconds}s)"
        )
    return _engine


def get_session_factory():
    global _session_factory
    if _session_factory is None:
        # DTOs are built after commit, so loaded attributes must stay readable
        _session_factory = sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _session_factory


def initialize_session(
    database_url: Optional[str] = None,
    pool_size: int = 6,
    timeout_seconds: int = 30,
    busy_timeout_ms: int = 5000,
) -> None:
    """Replace the session configuration, disposing any engine built from the old one."""
    global _config, _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
        _engine = None
    _session_factory = None

    _config = SessionConfig(database_url, pool_size, timeout_seconds, busy_timeout_ms)
    logger.info(f"Session configured for {_config.backend}")


@contextmanager
def get_session(commit: bool = False) -> Generator[Session, None, None]:
    """
    Context manager that provides a transactional session.

    Args:
        commit: Commit on successful exit. Read paths leave it False and only flush.

    Any exception rolls the whole transaction back and is re-raised.

    Example:
        with get_session(commit=True) as session:
            session.add(PlayerStatsModel(userid=user_id, gold=50))
    """
    session = get_session_factory()()
    try:
        yield session
        if commit:
            session.commit()
        else:
            session.flush()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables() -> None:
    """Create the schema straight from the models (tests and throwaway databases)."""
    Base.metadata.create_all(get_engine())


def drop_all_tables() -> None:
    Base.metadata.drop_all(get_engine())


@atexit.register
def _dispose_engine() -> None:
    if _engine is not None:
        _engine.dispose()
