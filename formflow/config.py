"""Configuration utilities for the form visibility service.

This module loads application configuration with the following rules:
- Primary source: `formflow_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("formflow_config.json")
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        # Recoverable: log and ignore unreadable override
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


def _truthy(text: object) -> bool:
    return str(text).strip().lower() in {"1", "true", "yes", "on"}


class DatabaseConfig(BaseModel):
    dsn: str
    ssl_required: bool = Field(default=False)
    auto_apply_migrations: bool = Field(default=True)

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class VisibilityConfig(BaseModel):
    # When false, answers of newly hidden questions are reported but kept in storage
    clear_hidden_answers: bool = Field(default=True)
    max_questions_per_form: int = Field(default=500, gt=0)


class AppConfig(BaseModel):
    database: DatabaseConfig
    visibility: VisibilityConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) formflow_config.json at project root
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    dsn = (
        _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or "sqlite+pysqlite:///:memory:"
    )
    ssl_required_text = _env("DATABASE_SSL_REQUIRED") or _read_config_file("database.ssl.required") or _base("database.ssl_required", "false")
    auto_migrate_text = _env("AUTO_APPLY_MIGRATIONS") or _read_config_file("database.auto_apply_migrations") or _base("database.auto_apply_migrations", "true")

    clear_hidden_text = _env("CLEAR_HIDDEN_ANSWERS") or _read_config_file("visibility.clear_hidden_answers") or _base("visibility.clear_hidden_answers", "true")
    max_questions_text = _env("MAX_QUESTIONS_PER_FORM") or _read_config_file("visibility.max_questions_per_form") or _base("visibility.max_questions_per_form", "500")

    try:
        cfg = AppConfig(
            database=DatabaseConfig(
                dsn=dsn,
                ssl_required=_truthy(ssl_required_text),
                auto_apply_migrations=_truthy(auto_migrate_text),
            ),
            visibility=VisibilityConfig(
                clear_hidden_answers=_truthy(clear_hidden_text),
                max_questions_per_form=int(str(max_questions_text).strip()),
            ),
        )
        return cfg
    except (PydanticValidationError, ValueError) as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "VisibilityConfig",
    "load_config",
]
