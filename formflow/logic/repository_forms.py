"""Form, module, form-condition and submission repository helpers."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Set

from sqlalchemy import bindparam, text as sql_text

from formflow.db.base import get_engine
from formflow.models.records import Form, FormCondition

logger = logging.getLogger(__name__)

_FORM_COLUMNS = "id, name, description, module_id, is_public, unlock_at, created_at"
_CONDITION_COLUMNS = (
    "id, form_id, condition_type, dependent_form_id, dependent_question_id, dependent_answer_idx"
)


def _row_to_form(row: Any) -> Form:
    return Form.model_validate(dict(row._mapping))


def _row_to_condition(row: Any) -> FormCondition:
    return FormCondition.model_validate(dict(row._mapping))


def get_form(form_id: int) -> Optional[Form]:
    eng = get_engine()
    try:
        with eng.connect() as conn:
            row = conn.execute(
                sql_text(f"SELECT {_FORM_COLUMNS} FROM form WHERE id = :fid"), {"fid": int(form_id)}
            ).fetchone()
    except Exception:
        logger.error("get_form failed form_id=%s", form_id, exc_info=True)
        raise
    return _row_to_form(row) if row is not None else None


def list_module_forms(module_id: int) -> List[Form]:
    """Return the sub-forms whose module_id is ``module_id``, ordered by id."""
    eng = get_engine()
    try:
        with eng.connect() as conn:
            rows = conn.execute(
                sql_text(f"SELECT {_FORM_COLUMNS} FROM form WHERE module_id = :mid ORDER BY id ASC"),
                {"mid": int(module_id)},
            ).fetchall()
    except Exception:
        logger.error("list_module_forms failed module_id=%s", module_id, exc_info=True)
        raise
    return [_row_to_form(r) for r in rows]


def list_conditions_for_forms(form_ids: Iterable[int]) -> List[FormCondition]:
    ids = sorted({int(i) for i in form_ids})
    if not ids:
        return []
    stmt = sql_text(
        f"SELECT {_CONDITION_COLUMNS} FROM form_condition WHERE form_id IN :fids ORDER BY id ASC"
    ).bindparams(bindparam("fids", expanding=True))
    eng = get_engine()
    try:
        with eng.connect() as conn:
            rows = conn.execute(stmt, {"fids": ids}).fetchall()
    except Exception:
        logger.error("list_conditions_for_forms failed form_ids=%s", ids, exc_info=True)
        raise
    return [_row_to_condition(r) for r in rows]


def submitted_form_ids(user_id: str, form_ids: Iterable[int]) -> Set[int]:
    ids = sorted({int(i) for i in form_ids})
    if not ids:
        return set()
    stmt = sql_text(
        "SELECT form_id FROM form_submission WHERE user_id = :uid AND form_id IN :fids"
    ).bindparams(bindparam("fids", expanding=True))
    eng = get_engine()
    try:
        with eng.connect() as conn:
            rows = conn.execute(stmt, {"uid": str(user_id), "fids": ids}).fetchall()
    except Exception:
        logger.error("submitted_form_ids failed user_id=%s", user_id, exc_info=True)
        raise
    return {int(r[0]) for r in rows}


def record_submission(user_id: str, form_id: int) -> None:
    """Mark the form as submitted by the user; repeated calls are no-ops."""
    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(
                sql_text(
                    "INSERT INTO form_submission (user_id, form_id) VALUES (:uid, :fid) "
                    "ON CONFLICT (user_id, form_id) DO NOTHING"
                ),
                {"uid": str(user_id), "fid": int(form_id)},
            )
    except Exception:
        logger.error("record_submission failed user_id=%s form_id=%s", user_id, form_id, exc_info=True)
        raise


def insert_form(form: Form) -> None:
    """Seed a form row; used by fixtures and data loads, not by the API."""
    params = form.model_dump(include={"id", "name", "description", "module_id", "is_public"})
    params["unlock_at"] = form.unlock_at.isoformat() if form.unlock_at is not None else None
    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(
                sql_text(
                    "INSERT INTO form (id, name, description, module_id, is_public, unlock_at) "
                    "VALUES (:id, :name, :description, :module_id, :is_public, :unlock_at)"
                ),
                params,
            )
    except Exception:
        logger.error("insert_form failed form_id=%s", form.id, exc_info=True)
        raise


def insert_condition(condition: FormCondition) -> None:
    """Seed a condition row. Storage rejects a form gating itself."""
    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(
                sql_text(
                    f"INSERT INTO form_condition ({_CONDITION_COLUMNS}) VALUES "
                    "(:id, :form_id, :condition_type, :dependent_form_id, :dependent_question_id, :dependent_answer_idx)"
                ),
                condition.model_dump(),
            )
    except Exception:
        logger.error("insert_condition failed condition_id=%s", condition.id, exc_info=True)
        raise


__all__ = [
    "get_form",
    "list_module_forms",
    "list_conditions_for_forms",
    "submitted_form_ids",
    "record_submission",
    "insert_form",
    "insert_condition",
]
