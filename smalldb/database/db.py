"""Database engine construction and connectivity checks."""

from __future__ import annotations

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from smalldb.core.config import get_config

logger = logging.getLogger(__name__)

config = get_config()


def build_engine(database_url: str, echo: bool | None = None) -> Engine:
    """Create an engine; pool sizing applies to server databases only."""
    options: dict = {"echo": config.DEBUG if echo is None else echo, "pool_pre_ping": True}
    if not database_url.startswith("sqlite"):
        options.update(pool_recycle=3600, pool_size=10, max_overflow=20)
    return create_engine(database_url, **options)


engine = build_engine(config.DATABASE_URL)


def get_engine() -> Engine:
    """Return the engine built from ``DATABASE_URL``."""
    return engine


def verify_database_connection(bind: Engine | None = None) -> bool:
    """Run a trivial query to check that the database is reachable."""
    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as exc:
        logger.error(
            "database.connection_failed",
            extra={"event": "database.connection_failed", "error": str(exc)},
        )
        return False
