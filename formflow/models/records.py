"""Pydantic records consumed by the visibility and form dependency engine.

These mirror the question, answer, form and form-condition rows owned by
the persistence layer. The engine never writes them back; repositories
build them from query rows and routes build them from request bodies.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

AnswerValue = Union[str, List[str]]

ConditionType = Literal["complete_form", "answer_question", "specific_answer"]


class Question(BaseModel):
    id: int
    form_id: int
    question_type: str
    question_title: Optional[str] = None
    # Raw JSON blob as stored, or an already-decoded mapping
    options_category: Optional[Union[str, dict]] = None
    qorder: int
    required: bool = False
    parent_question_id: Optional[int] = None
    enabling_answers: List[int] = Field(default_factory=list)


class Answer(BaseModel):
    id: Optional[int] = None
    user_id: str
    form_id: int
    question_id: int
    question_type: str
    answer: AnswerValue = ""
    created_at: Optional[datetime] = None


class Form(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    module_id: Optional[int] = None
    is_public: bool = True
    unlock_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class FormCondition(BaseModel):
    id: Optional[int] = None
    form_id: int
    condition_type: ConditionType
    dependent_form_id: int
    dependent_question_id: Optional[int] = None
    dependent_answer_idx: Optional[int] = None

    @model_validator(mode="after")
    def check_required_references(self) -> "FormCondition":
        if self.condition_type in ("answer_question", "specific_answer") and self.dependent_question_id is None:
            raise ValueError(f"{self.condition_type} requires dependent_question_id")
        if self.condition_type == "specific_answer":
            if self.dependent_answer_idx is None:
                raise ValueError("specific_answer requires dependent_answer_idx")
            if self.dependent_answer_idx < 0:
                raise ValueError("dependent_answer_idx must be >= 0")
        elif self.dependent_answer_idx is not None:
            raise ValueError("dependent_answer_idx is only allowed for specific_answer")
        return self


__all__ = [
    "AnswerValue",
    "ConditionType",
    "Question",
    "Answer",
    "Form",
    "FormCondition",
]
