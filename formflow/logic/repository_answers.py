"""Answer repository helpers.

Answers are stored one row per (user, form, question) with the value
JSON-encoded so single- and multi-valued answers round-trip unchanged.
Writes use upsert semantics.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from sqlalchemy import bindparam, text as sql_text

from formflow.db.base import get_engine
from formflow.models.records import Answer

logger = logging.getLogger(__name__)

_UPSERT_SQL = sql_text(
    """
    INSERT INTO form_answer (user_id, form_id, question_id, question_type, answer)
    VALUES (:uid, :fid, :qid, :qtype, :answer)
    ON CONFLICT (user_id, form_id, question_id)
    DO UPDATE SET answer = excluded.answer, question_type = excluded.question_type
    """
)


def _decode(raw: Any) -> Any:
    if raw is None:
        return ""
    try:
        value = json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        # Rows written outside this service may hold bare text
        return str(raw)
    if isinstance(value, list):
        return [str(v) for v in value]
    if isinstance(value, str):
        return value
    # Bare text that happens to parse as a JSON scalar ("true", "null", "1e3")
    return str(raw)


def list_answer_records(user_id: str, form_id: int) -> List[Answer]:
    """Return the user's stored answers in a form ordered by question id."""
    eng = get_engine()
    try:
        with eng.connect() as conn:
            rows = conn.execute(
                sql_text(
                    "SELECT question_id, question_type, answer FROM form_answer "
                    "WHERE user_id = :uid AND form_id = :fid ORDER BY question_id"
                ),
                {"uid": str(user_id), "fid": int(form_id)},
            ).fetchall()
    except Exception:
        logger.error("list_answers failed user_id=%s form_id=%s", user_id, form_id, exc_info=True)
        raise
    return [
        Answer(
            user_id=str(user_id),
            form_id=int(form_id),
            question_id=int(r[0]),
            question_type=str(r[1]),
            answer=_decode(r[2]),
        )
        for r in rows
    ]


def list_answers(user_id: str, form_id: int) -> Dict[int, Any]:
    """Return question_id -> answer value for the user's answers in a form."""
    return {a.question_id: a.answer for a in list_answer_records(user_id, form_id)}


def list_answers_for_forms(user_id: str, form_ids: Iterable[int]) -> Dict[Tuple[int, int], Any]:
    """Return (form_id, question_id) -> answer value across several forms."""
    ids = sorted({int(i) for i in form_ids})
    if not ids:
        return {}
    stmt = sql_text(
        "SELECT form_id, question_id, answer FROM form_answer WHERE user_id = :uid AND form_id IN :fids"
    ).bindparams(bindparam("fids", expanding=True))
    eng = get_engine()
    try:
        with eng.connect() as conn:
            rows = conn.execute(stmt, {"uid": str(user_id), "fids": ids}).fetchall()
    except Exception:
        logger.error("list_answers_for_forms failed user_id=%s form_ids=%s", user_id, ids, exc_info=True)
        raise
    return {(int(r[0]), int(r[1])): _decode(r[2]) for r in rows}


def save_answers(user_id: str, form_id: int, rows: Sequence[Tuple[int, str, Any]]) -> None:
    """Upsert ``(question_id, question_type, value)`` rows in one transaction.

    Used for an edited answer together with the clearing of answers whose
    questions it hid, so storage never holds one without the other.
    """
    eng = get_engine()
    try:
        with eng.begin() as conn:
            for qid, qtype, value in rows:
                conn.execute(
                    _UPSERT_SQL,
                    {
                        "uid": str(user_id),
                        "fid": int(form_id),
                        "qid": int(qid),
                        "qtype": str(qtype),
                        "answer": json.dumps(value),
                    },
                )
    except Exception:
        logger.error(
            "save_answers failed user_id=%s form_id=%s question_ids=%s",
            user_id,
            form_id,
            [r[0] for r in rows],
            exc_info=True,
        )
        raise


__all__ = ["list_answer_records", "list_answers", "list_answers_for_forms", "save_answers"]
