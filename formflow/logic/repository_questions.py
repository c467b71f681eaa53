"""Question repository helpers.

Encapsulates the SQL used to load a form's questions and to persist
reorders, keeping route handlers free of direct SQL. Errors are logged at
ERROR with context and re-raised.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import bindparam, text as sql_text

from formflow.db.base import get_engine
from formflow.models.records import Question

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, form_id, question_type, question_title, options_category, qorder, required, "
    "parent_question_id, enabling_answers"
)


def _row_to_question(row: Any) -> Question:
    m = row._mapping
    raw_enabling = m["enabling_answers"]
    try:
        enabling = json.loads(raw_enabling) if isinstance(raw_enabling, str) else list(raw_enabling or [])
    except json.JSONDecodeError:
        logger.warning("enabling_answers_malformed question_id=%s raw=%r", m["id"], raw_enabling)
        enabling = []
    return Question(
        id=int(m["id"]),
        form_id=int(m["form_id"]),
        question_type=str(m["question_type"]),
        question_title=m["question_title"],
        options_category=m["options_category"],
        qorder=int(m["qorder"]),
        required=bool(m["required"]),
        parent_question_id=m["parent_question_id"],
        enabling_answers=[int(i) for i in enabling],
    )


def list_questions_for_form(form_id: int) -> List[Question]:
    """Return the form's questions ordered by qorder."""
    eng = get_engine()
    try:
        with eng.connect() as conn:
            rows = conn.execute(
                sql_text(f"SELECT {_COLUMNS} FROM form_question WHERE form_id = :fid ORDER BY qorder ASC, id ASC"),
                {"fid": int(form_id)},
            ).fetchall()
    except Exception:
        logger.error("list_questions_for_form failed form_id=%s", form_id, exc_info=True)
        raise
    return [_row_to_question(r) for r in rows]


def get_questions_by_ids(question_ids: Iterable[int]) -> Dict[int, Question]:
    ids = sorted({int(i) for i in question_ids})
    if not ids:
        return {}
    eng = get_engine()
    stmt = sql_text(f"SELECT {_COLUMNS} FROM form_question WHERE id IN :ids").bindparams(
        bindparam("ids", expanding=True)
    )
    try:
        with eng.connect() as conn:
            rows = conn.execute(stmt, {"ids": ids}).fetchall()
    except Exception:
        logger.error("get_questions_by_ids failed ids=%s", ids, exc_info=True)
        raise
    return {q.id: q for q in (_row_to_question(r) for r in rows)}


def get_question(question_id: int) -> Optional[Question]:
    return get_questions_by_ids([question_id]).get(int(question_id))


def update_qorders(updates: Sequence[Tuple[int, int]]) -> None:
    """Apply ``(question_id, qorder)`` updates in a single transaction."""
    eng = get_engine()
    try:
        with eng.begin() as conn:
            for qid, qorder in updates:
                conn.execute(
                    sql_text("UPDATE form_question SET qorder = :o WHERE id = :qid"),
                    {"o": int(qorder), "qid": int(qid)},
                )
    except Exception:
        logger.error("update_qorders failed updates=%s", list(updates), exc_info=True)
        raise


def insert_question(question: Question) -> None:
    """Insert a question row as authored (ids are assigned by the caller).

    Seeding utility for fixtures and data loads; the API never creates
    questions.
    """
    opts = question.options_category
    if isinstance(opts, dict):
        opts = json.dumps(opts)
    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(
                sql_text(
                    f"INSERT INTO form_question ({_COLUMNS}) VALUES "
                    "(:id, :form_id, :question_type, :question_title, :options_category, :qorder, :required, "
                    ":parent_question_id, :enabling_answers)"
                ),
                {
                    "id": question.id,
                    "form_id": question.form_id,
                    "question_type": question.question_type,
                    "question_title": question.question_title,
                    "options_category": opts,
                    "qorder": question.qorder,
                    "required": question.required,
                    "parent_question_id": question.parent_question_id,
                    "enabling_answers": json.dumps(list(question.enabling_answers)),
                },
            )
    except Exception:
        logger.error("insert_question failed question_id=%s", question.id, exc_info=True)
        raise


__all__ = [
    "list_questions_for_form",
    "get_questions_by_ids",
    "get_question",
    "update_qorders",
    "insert_question",
]
