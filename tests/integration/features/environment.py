"""Behave environment hooks for form visibility integration tests.

By default the scenarios drive the FastAPI app in-process through
TestClient over a file-backed SQLite database. When ``TEST_BASE_URL`` is
set, requests go to that running API with httpx instead, and
``TEST_DATABASE_URL`` must point at the database it uses so steps can
seed forms and questions.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import httpx
from sqlalchemy import text

ROOT = Path(__file__).resolve().parents[3]
LOCAL_DB = ROOT / "tmp" / "integration_tests.db"

# Child tables first so foreign keys never dangle
_TABLES = ("form_submission", "form_answer", "form_condition", "form_question", "form")


def before_all(context: Any) -> None:
    base_url = os.getenv("TEST_BASE_URL", "").strip().rstrip("/")
    context.api_prefix = os.getenv("TEST_API_PREFIX", "/api/v1")

    if base_url:
        dsn = os.getenv("TEST_DATABASE_URL", "").strip()
        assert dsn, "TEST_DATABASE_URL must be set when TEST_BASE_URL targets a live API"
        os.environ["DATABASE_URL"] = dsn
    else:
        LOCAL_DB.parent.mkdir(parents=True, exist_ok=True)
        if LOCAL_DB.exists():
            LOCAL_DB.unlink()
        os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{LOCAL_DB}"
    os.environ.setdefault("AUTO_APPLY_MIGRATIONS", "1")

    from formflow.db.base import get_engine, reset_engine
    from formflow.db.migrations_runner import apply_migrations

    reset_engine()
    context.engine = get_engine()

    if base_url:
        apply_migrations(context.engine)
        context.client = httpx.Client(base_url=base_url, timeout=10.0)
    else:
        from fastapi.testclient import TestClient

        from formflow.main import create_app

        context.client = TestClient(create_app())


def before_scenario(context: Any, scenario: Any) -> None:
    with context.engine.begin() as conn:
        for table in _TABLES:
            conn.execute(text(f"DELETE FROM {table}"))
    context.response = None
    context.next_condition_id = 1


def after_all(context: Any) -> None:
    client = getattr(context, "client", None)
    if client is not None:
        client.close()
    from formflow.db.base import reset_engine

    reset_engine()
