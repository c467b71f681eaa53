"""Submission gating verdict.

Computes a verdict with the shape
``{ ok: bool, missing: [question_id], blocking_items: [{question_id, reason}] }``
from the currently visible questions and the user's answers. Hidden
questions never block a submission, whatever their ``required`` flag.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from formflow.logic.answer_index import answer_values, is_empty_answer
from formflow.logic.options_category import options_for
from formflow.logic.visibility_rules import lookup_answer
from formflow.models.options import LinearScaleOptions, MultiSelectOptions
from formflow.models.question_kind import QuestionKind
from formflow.models.records import Question

logger = logging.getLogger(__name__)

MISSING_REQUIRED_ANSWER = "missing_required_answer"
SELECTION_BELOW_MINIMUM = "selection_below_minimum"
SELECTION_ABOVE_MAXIMUM = "selection_above_maximum"
VALUE_OUT_OF_RANGE = "value_out_of_range"
NOT_A_NUMBER = "not_a_number"


def _value_problem(question: Question, value: Any) -> Optional[str]:
    """Return a reason token when a non-empty answer breaks its question's options."""
    values = answer_values(value)
    if question.question_type == QuestionKind.NUMBER:
        try:
            float(values[0])
        except ValueError:
            return NOT_A_NUMBER
        return None
    opts = options_for(question)
    if isinstance(opts, MultiSelectOptions):
        if len(values) < opts.min:
            return SELECTION_BELOW_MINIMUM
        if opts.max is not None and len(values) > opts.max:
            return SELECTION_ABOVE_MAXIMUM
    elif isinstance(opts, LinearScaleOptions):
        if values[0] not in opts.choices:
            return VALUE_OUT_OF_RANGE
    return None


def validate_submission(
    visible_questions: Sequence[Question],
    answers: Mapping[Any, Any],
) -> Dict[str, Any]:
    """Return the gating verdict for a submission.

    A visible required question whose answer is missing, blank, or an empty
    selection is reported in ``missing``. Non-empty visible answers are also
    checked against their options (selection bounds, scale range, numbers).

    ``ok`` is false whenever ``blocking_items`` is non-empty, so it can be
    false while ``missing`` is empty. Do not treat ``ok`` as ``not missing``.
    """
    missing: List[int] = []
    items: List[Dict[str, Any]] = []
    for q in sorted(visible_questions, key=lambda x: (x.qorder, x.id)):
        value = lookup_answer(answers, q.id)
        if is_empty_answer(value):
            if q.required:
                missing.append(q.id)
                items.append({"question_id": q.id, "reason": MISSING_REQUIRED_ANSWER})
            continue
        reason = _value_problem(q, value)
        if reason is not None:
            items.append({"question_id": q.id, "reason": reason})

    ok = len(items) == 0
    logger.info("gating_verdict ok=%s missing=%s blocking=%s", ok, missing, len(items))
    return {"ok": ok, "missing": missing, "blocking_items": items}


__all__ = [
    "MISSING_REQUIRED_ANSWER",
    "SELECTION_BELOW_MINIMUM",
    "SELECTION_ABOVE_MAXIMUM",
    "VALUE_OUT_OF_RANGE",
    "NOT_A_NUMBER",
    "validate_submission",
]
