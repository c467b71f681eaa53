"""Functional test bootstrap.

Logic tests build records in memory through the ``make_question`` /
``make_form`` helpers. HTTP tests get a ``client`` fixture backed by a
file-based SQLite database that is recreated, and migrated by the app
factory, for every test.
"""

from __future__ import annotations

import json
import os
import pathlib
from typing import Any, Iterator, List, Optional

import pytest

# Point the app at a file-backed SQLite DB before any formflow import
_ROOT = pathlib.Path(__file__).resolve().parents[2]
_DB_FILE = _ROOT / "tmp" / "functional_tests.db"
_DB_FILE.parent.mkdir(parents=True, exist_ok=True)
os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{_DB_FILE}"
os.environ["AUTO_APPLY_MIGRATIONS"] = "1"
os.environ.pop("CLEAR_HIDDEN_ANSWERS", None)

from formflow.models.records import Form, FormCondition, Question  # noqa: E402


def make_question(
    qid: int,
    qorder: int,
    question_type: str = "text_answer",
    *,
    form_id: int = 1,
    choices: Optional[List[str]] = None,
    options: Any = None,
    parent: Optional[int] = None,
    enabling: Optional[List[int]] = None,
    required: bool = False,
    title: Optional[str] = None,
) -> Question:
    if options is None and choices is not None:
        options = json.dumps({"choices": choices})
    return Question(
        id=qid,
        form_id=form_id,
        question_type=question_type,
        question_title=title or f"Question {qid}",
        options_category=options,
        qorder=qorder,
        required=required,
        parent_question_id=parent,
        enabling_answers=list(enabling or []),
    )


def make_form(fid: int, name: Optional[str] = None, module_id: Optional[int] = None, **kwargs: Any) -> Form:
    return Form(id=fid, name=name or f"Form {fid}", module_id=module_id, **kwargs)


def make_condition(cid: Optional[int], form_id: int, condition_type: str, dependent_form_id: int, **kwargs: Any) -> FormCondition:
    return FormCondition(
        id=cid,
        form_id=form_id,
        condition_type=condition_type,
        dependent_form_id=dependent_form_id,
        **kwargs,
    )


@pytest.fixture()
def client() -> Iterator[Any]:
    """TestClient over a freshly migrated database."""
    from fastapi.testclient import TestClient

    from formflow.db.base import reset_engine
    from formflow.main import create_app

    reset_engine()
    if _DB_FILE.exists():
        _DB_FILE.unlink()
    app = create_app()
    with TestClient(app) as c:
        yield c
    reset_engine()
