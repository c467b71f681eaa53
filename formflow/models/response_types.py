"""Pydantic models for HTTP response bodies."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from formflow.models.records import Question


class VisibilityDelta(BaseModel):
    now_visible: List[int]
    now_hidden: List[int]


class ResponseView(BaseModel):
    form_id: int
    user_id: str
    questions: List[Question]
    answers: Dict[str, Any]


class SavedResult(BaseModel):
    saved: bool
    question_id: int
    visibility_delta: VisibilityDelta
    suppressed_answers: List[int]
    # Ids whose stored answers were cleared in this write (empty when clearing is disabled)
    cleared_answers: List[int]
    questions: List[Question]


class BlockingItem(BaseModel):
    question_id: int
    reason: str


class SubmissionResult(BaseModel):
    ok: bool
    missing: List[int]
    blocking_items: List[BlockingItem]
    submitted: bool = False


class FollowUp(BaseModel):
    question_id: int
    description: str
    # Follow-ups nested under this one; hiding it hides and clears them too
    nested: List[int] = []


class UnreachableOption(BaseModel):
    question_id: int
    index: int


class GraphView(BaseModel):
    ok: bool
    roots: List[int]
    children: Dict[str, List[int]]
    follow_ups: List[FollowUp] = []
    warnings: List[UnreachableOption] = []


class ConditionCheck(BaseModel):
    ok: bool
    description: str


class ConditionDescription(BaseModel):
    condition_id: Optional[int] = None
    form_id: int
    description: str


class ModuleForms(BaseModel):
    module_id: int
    user_id: str
    unlocked: List[int]
    available: List[int]
    completed: List[int]
    locked: List[int]
    conditions: List[ConditionDescription]


__all__ = [
    "VisibilityDelta",
    "ResponseView",
    "SavedResult",
    "BlockingItem",
    "SubmissionResult",
    "FollowUp",
    "UnreachableOption",
    "GraphView",
    "ConditionCheck",
    "ConditionDescription",
    "ModuleForms",
]
