"""Database initialization and Alembic migration helpers.

This module provides database setup, configuration, and migration functionality.
For business logic operations, use the service modules in charasphere.utils.services.
"""

import logging
import os
from typing import Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from charasphere.utils.session import (
    get_database_url,
    get_engine,
    initialize_session as _init_session,
)

logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
ALEMBIC_INI_PATH = os.path.join(PROJECT_ROOT, "alembic.ini")
ALEMBIC_SCRIPT_LOCATION = os.path.join(PROJECT_ROOT, "alembic")
INITIAL_ALEMBIC_REVISION = "20241201_0001"


def initialize_database(
    database_url: Optional[str] = None,
    pool_size: int = 6,
    timeout_seconds: int = 30,
    busy_timeout_ms: int = 5000,
) -> None:
    """
    Initialize database configuration.

    This should be called once at application startup before any database operations.

    Args:
        database_url: SQLAlchemy URL (Postgres in production, SQLite locally)
        pool_size: Size of the connection pool (default: 6)
        timeout_seconds: Connection timeout in seconds (default: 30)
        busy_timeout_ms: SQLite busy timeout in milliseconds (default: 5000)
    """
    _init_session(database_url, pool_size, timeout_seconds, busy_timeout_ms)
    logger.info("Database initialized")


def _get_alembic_config() -> Config:
    """Build an Alembic configuration pointing at the project's migration setup."""
    config = Config(ALEMBIC_INI_PATH)
    config.set_main_option("script_location", ALEMBIC_SCRIPT_LOCATION)
    # ConfigParser interpolation treats % specially (URL-encoded passwords)
    config.set_main_option("sqlalchemy.url", get_database_url().replace("%", "%%"))
    return config


def _has_table(table_name: str) -> bool:
    return inspect(get_engine()).has_table(table_name)


def run_migrations():
    """Apply Alembic migrations to bring the database schema up to date."""
    config = _get_alembic_config()
    if not _has_table("alembic_version") and _has_table("Roster"):
        logger.info(
            "Existing schema detected without Alembic metadata; stamping baseline revision %s",
            INITIAL_ALEMBIC_REVISION,
        )
        command.stamp(config, INITIAL_ALEMBIC_REVISION)
    try:
        command.upgrade(config, "head")
    except Exception:
        logger.exception("Failed to apply database migrations")
        raise
