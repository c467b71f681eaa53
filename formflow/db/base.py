"""SQLAlchemy engine management.

Targets PostgreSQL in production and SQLite for local development and
tests. No declarative models are defined here; repositories issue
parameterised SQL through the shared engine.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from formflow.config import load_config

logger = logging.getLogger(__name__)

# Module-level cached Engine so repositories share one pool
_ENGINE: Optional[Engine] = None
_ENGINE_URL: Optional[str] = None


def get_engine(url: Optional[str] = None) -> Engine:
    """Return a singleton SQLAlchemy Engine for the given (or configured) URL.

    For SQLite in-memory URLs a StaticPool keeps a single connection alive
    so every caller sees the same database. Other dialects get
    ``sslmode=require`` when the database config demands SSL.
    """
    global _ENGINE, _ENGINE_URL
    resolved_url = url or load_config().database.dsn

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        kwargs: dict = {"future": True, "pool_pre_ping": True}
        if resolved_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in resolved_url:
                kwargs["poolclass"] = StaticPool
        elif load_config().database.ssl_required:
            kwargs["connect_args"] = {"sslmode": "require"}
        if _ENGINE is not None:
            _ENGINE.dispose()
        _ENGINE = create_engine(resolved_url, **kwargs)
        _ENGINE_URL = resolved_url
        logger.info("db_engine_created dialect=%s", _ENGINE.dialect.name)

    return _ENGINE


def reset_engine() -> None:
    """Dispose the cached engine; the next ``get_engine`` call builds a new one."""
    global _ENGINE, _ENGINE_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_URL = None


__all__ = ["get_engine", "reset_engine"]
