"""Response endpoints: visible questions, autosave and submit.

Implements:
- GET   /forms/{form_id}/responses/{user_id}
- PATCH /forms/{form_id}/responses/{user_id}/answers/{question_id}
  - Persists the answer, clears answers of questions it hid, and returns
    the visibility delta
- POST  /forms/{form_id}/responses/{user_id}/submit
  - Delegates to gating; records the submission when the verdict is ok
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Union

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from formflow.config import load_config
from formflow.http.error_mapping import problem_for
from formflow.logic.dependency_graph import QuestionGraph, build_graph
from formflow.logic.errors import MISSING_REQUIRED_FIELD
from formflow.logic.gating import validate_submission
from formflow.logic.repository_answers import list_answers, save_answers
from formflow.logic.repository_forms import get_form, record_submission
from formflow.logic.repository_questions import list_questions_for_form
from formflow.logic.visibility_rules import (
    apply_answer_change,
    compute_visible,
    empty_value_for,
    lookup_answer,
    prune_hidden_answers,
)
from formflow.models.response_types import ResponseView, SavedResult, SubmissionResult, VisibilityDelta

router = APIRouter()
logger = logging.getLogger(__name__)


class AnswerPatch(BaseModel):
    value: Union[str, List[str]]


def _load_graph(form_id: int) -> QuestionGraph:
    if get_form(form_id) is None:
        raise HTTPException(status_code=404, detail=problem_for("NOT_FOUND", f"form {form_id} not found"))
    return build_graph(list_questions_for_form(form_id))


@router.get("/forms/{form_id}/responses/{user_id}", summary="Visible questions and answers", response_model=ResponseView)
def get_response(form_id: int, user_id: str) -> ResponseView:
    graph = _load_graph(form_id)
    answers = list_answers(user_id, form_id)
    visible = compute_visible(graph, answers)
    logger.info("visibility_evaluated form_id=%s user_id=%s visible=%s", form_id, user_id, [q.id for q in visible])
    return ResponseView(
        form_id=form_id,
        user_id=user_id,
        questions=visible,
        answers={str(q.id): lookup_answer(answers, q.id) for q in visible if lookup_answer(answers, q.id) is not None},
    )


@router.patch(
    "/forms/{form_id}/responses/{user_id}/answers/{question_id}",
    summary="Save one answer and re-evaluate visibility",
    response_model=SavedResult,
)
def patch_answer(form_id: int, user_id: str, question_id: int, body: AnswerPatch) -> SavedResult:
    graph = _load_graph(form_id)
    if question_id not in graph.by_id:
        raise HTTPException(
            status_code=404,
            detail=problem_for("NOT_FOUND", f"question {question_id} not found in form {form_id}"),
        )
    answers = list_answers(user_id, form_id)
    outcome = apply_answer_change(graph, answers, question_id, body.value)

    rows = [(question_id, graph.question(question_id).question_type, body.value)]
    cleared: List[int] = []
    if load_config().visibility.clear_hidden_answers:
        cleared = list(outcome.cleared)
        rows.extend((qid, graph.question(qid).question_type, empty_value_for(graph.question(qid))) for qid in cleared)
    save_answers(user_id, form_id, rows)
    logger.info(
        "answer_saved form_id=%s user_id=%s question_id=%s now_visible=%s now_hidden=%s cleared=%s",
        form_id,
        user_id,
        question_id,
        outcome.now_visible,
        outcome.now_hidden,
        cleared,
    )
    return SavedResult(
        saved=True,
        question_id=question_id,
        visibility_delta=VisibilityDelta(now_visible=outcome.now_visible, now_hidden=outcome.now_hidden),
        suppressed_answers=list(outcome.cleared),
        cleared_answers=cleared,
        questions=outcome.visible,
    )


@router.post(
    "/forms/{form_id}/responses/{user_id}/submit",
    summary="Validate and record a submission",
    response_model=SubmissionResult,
)
def submit_response(form_id: int, user_id: str) -> SubmissionResult:
    graph = _load_graph(form_id)
    answers = list_answers(user_id, form_id)
    visible = compute_visible(graph, answers)
    verdict: Dict[str, Any] = validate_submission(visible, answers)
    if not verdict["ok"]:
        code = MISSING_REQUIRED_FIELD if verdict["missing"] else "INVALID_ANSWER"
        problem = problem_for(
            code,
            "submission blocked by visible questions",
            missing=verdict["missing"],
            blocking_items=verdict["blocking_items"],
        )
        raise HTTPException(status_code=problem["status"], detail=problem)

    if load_config().visibility.clear_hidden_answers:
        _pruned, cleared = prune_hidden_answers(graph, answers)
        if cleared:
            save_answers(
                user_id,
                form_id,
                [(qid, graph.question(qid).question_type, empty_value_for(graph.question(qid))) for qid in cleared],
            )
    record_submission(user_id, form_id)
    logger.info("submission_recorded form_id=%s user_id=%s", form_id, user_id)
    return SubmissionResult(submitted=True, **verdict)


__all__ = ["router"]
