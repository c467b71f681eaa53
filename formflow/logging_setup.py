"""Central logging configuration for the form visibility service.

Installs a single stdout handler on the root logger so module loggers
(``logging.getLogger(__name__)``) need no per-module setup. The level comes
from ``LOG_LEVEL`` (default INFO). Calling ``configure_logging`` twice is a
no-op, which matters under reloaders and in test sessions.
"""
from __future__ import annotations

import logging
import os
from logging.config import dictConfig


def _dict_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "formflow": {"level": level, "propagate": True},
            "uvicorn.access": {"level": "WARNING", "handlers": ["console"], "propagate": False},
        },
    }


def configure_logging() -> None:
    """Configure application-wide logging once."""
    root = logging.getLogger()
    if root.handlers:
        return
    level = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        level = "INFO"
    dictConfig(_dict_config(level))


__all__ = ["configure_logging"]
