"""Module endpoint: which sub-forms a user has unlocked.

Implements:
- GET /modules/{module_id}/users/{user_id}/forms
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException

from formflow.http.error_mapping import problem_for
from formflow.logic.form_conditions import describe_condition, partition_module_forms, unlocked_forms
from formflow.logic.repository_forms import get_form, list_conditions_for_forms, list_module_forms
from formflow.logic.repository_questions import get_questions_by_ids
from formflow.logic.user_state import load_user_state
from formflow.models.response_types import ConditionDescription, ModuleForms

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get(
    "/modules/{module_id}/users/{user_id}/forms",
    summary="Unlocked, available, completed and locked sub-forms for a user",
    response_model=ModuleForms,
)
def get_module_forms(module_id: int, user_id: str) -> ModuleForms:
    if get_form(module_id) is None:
        raise HTTPException(status_code=404, detail=problem_for("NOT_FOUND", f"module {module_id} not found"))
    module_forms = list_module_forms(module_id)
    form_ids = {f.id for f in module_forms}
    conditions = list_conditions_for_forms(form_ids)

    forms = {f.id: f for f in module_forms}
    for dep_id in {c.dependent_form_id for c in conditions} - form_ids:
        dep = get_form(dep_id)
        if dep is not None:
            forms[dep.id] = dep
    questions = get_questions_by_ids(
        c.dependent_question_id for c in conditions if c.dependent_question_id is not None
    )
    user_state = load_user_state(user_id, set(forms))

    unlocked = unlocked_forms(module_forms, conditions, user_state, questions)
    parts = partition_module_forms(
        module_forms, conditions, user_state, questions, now=datetime.now(timezone.utc), unlocked=unlocked
    )
    return ModuleForms(
        module_id=module_id,
        user_id=user_id,
        unlocked=sorted(unlocked),
        available=parts["available"],
        completed=parts["completed"],
        locked=parts["locked"],
        conditions=[
            ConditionDescription(
                condition_id=c.id, form_id=c.form_id, description=describe_condition(c, forms, questions)
            )
            for c in conditions
        ],
    )


__all__ = ["router"]
