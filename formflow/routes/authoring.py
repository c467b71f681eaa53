"""Authoring endpoints: dependency validation, reordering and condition checks.

Implements:
- POST  /forms/{form_id}/questions/validate       (fail fast before save)
- GET   /forms/{form_id}/graph                    (stored questions)
- PATCH /forms/{form_id}/questions/{question_id}/move-up|move-down
- POST  /forms/{form_id}/conditions/validate

Dependency errors propagate to the app-level handler, which renders them
as problem+json using the central error mapping.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from fastapi import APIRouter, HTTPException

from formflow.config import load_config
from formflow.http.error_mapping import ERROR_STATUS_MAP, problem_for
from formflow.logic.dependency_graph import build_graph, describe_follow_up
from formflow.logic.errors import InvalidDependencyOrder
from formflow.logic.form_conditions import describe_condition, validate_form_condition
from formflow.logic.order_sequences import DOWN, UP, plan_move
from formflow.logic.repository_forms import get_form, list_conditions_for_forms, list_module_forms
from formflow.logic.repository_questions import (
    get_questions_by_ids,
    list_questions_for_form,
    update_qorders,
)
from formflow.models.records import Form, FormCondition, Question
from formflow.models.response_types import ConditionCheck, FollowUp, GraphView, UnreachableOption

router = APIRouter()
logger = logging.getLogger(__name__)


def _not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=404, detail=problem_for("NOT_FOUND", detail))


def _require_form(form_id: int) -> Form:
    form = get_form(form_id)
    if form is None:
        raise _not_found(f"form {form_id} not found")
    return form


def _graph_view(form_id: int, questions: List[Question]) -> GraphView:
    limit = load_config().visibility.max_questions_per_form
    if len(questions) > limit:
        code = "TOO_MANY_QUESTIONS"
        raise HTTPException(
            status_code=ERROR_STATUS_MAP[code]["status"],
            detail=problem_for(code, f"form {form_id} has {len(questions)} questions; limit is {limit}"),
        )
    for q in questions:
        if q.form_id != form_id:
            raise InvalidDependencyOrder(
                f"question {q.id} belongs to form {q.form_id}, not {form_id}", question_id=q.id
            )
    graph = build_graph(questions)
    follow_ups = [
        FollowUp(
            question_id=q.id,
            description=describe_follow_up(graph, q.id) or "",
            nested=graph.descendants(q.id),
        )
        for q in graph.questions
        if q.parent_question_id is not None
    ]
    warnings = [UnreachableOption(question_id=qid, index=idx) for qid, idx in graph.unreachable_enabling_answers()]
    if warnings:
        logger.warning("unreachable_enabling_answers form_id=%s pairs=%s", form_id, warnings)
    return GraphView(
        ok=True,
        roots=list(graph.roots),
        children={str(k): v for k, v in graph.children.items()},
        follow_ups=follow_ups,
        warnings=warnings,
    )


@router.post(
    "/forms/{form_id}/questions/validate",
    summary="Validate a proposed question set before saving",
    response_model=GraphView,
)
def validate_questions(form_id: int, questions: List[Question]) -> GraphView:
    return _graph_view(form_id, questions)


@router.get("/forms/{form_id}/graph", summary="Dependency graph of stored questions", response_model=GraphView)
def get_graph(form_id: int) -> GraphView:
    _require_form(form_id)
    return _graph_view(form_id, list_questions_for_form(form_id))


def _move(form_id: int, question_id: int, direction: str) -> Dict[str, object]:
    _require_form(form_id)
    questions = list_questions_for_form(form_id)
    if not any(q.id == question_id for q in questions):
        raise _not_found(f"question {question_id} not found in form {form_id}")
    try:
        updates = plan_move(questions, question_id, direction)
    except InvalidDependencyOrder:
        raise
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=problem_for("INVALID_MOVE", str(exc)))
    update_qorders(updates)
    return {"moved": True, "updates": [{"question_id": qid, "qorder": qorder} for qid, qorder in updates]}


@router.patch("/forms/{form_id}/questions/{question_id}/move-up", summary="Move a question up one position")
def move_question_up(form_id: int, question_id: int) -> Dict[str, object]:
    return _move(form_id, question_id, UP)


@router.patch("/forms/{form_id}/questions/{question_id}/move-down", summary="Move a question down one position")
def move_question_down(form_id: int, question_id: int) -> Dict[str, object]:
    return _move(form_id, question_id, DOWN)


@router.post(
    "/forms/{form_id}/conditions/validate",
    summary="Check a form condition for self-gating and module cycles",
    response_model=ConditionCheck,
)
def validate_condition(form_id: int, condition: FormCondition) -> ConditionCheck:
    form = _require_form(form_id)
    if condition.form_id != form_id:
        condition = condition.model_copy(update={"form_id": form_id})
    module_forms = list_module_forms(form.module_id) if form.module_id is not None else None
    scope_ids = {f.id for f in module_forms} if module_forms else {form_id}
    existing = list_conditions_for_forms(scope_ids)
    validate_form_condition(condition, existing, module_forms)

    forms = {f.id: f for f in (module_forms or [form])}
    if condition.dependent_form_id not in forms:
        dep = get_form(condition.dependent_form_id)
        if dep is None:
            raise _not_found(f"form {condition.dependent_form_id} not found")
        forms[dep.id] = dep
    questions = get_questions_by_ids(
        [condition.dependent_question_id] if condition.dependent_question_id is not None else []
    )
    return ConditionCheck(ok=True, description=describe_condition(condition, forms, questions))


__all__ = ["router"]
