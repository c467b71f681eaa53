"""Visibility rule evaluation for follow-up questions.

Centralizes the parent-answer checks used by the response routes so that
every caller (screen render, autosave, submit) sees the same visible set.

Rules:
- A question without a parent is visible.
- A follow-up is visible only when its parent is visible and the parent's
  current answer selects at least one of the follow-up's enabling options
  (any selected value suffices for multi-valued answers).
- A question with an unknown type is hidden, and so are its follow-ups.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Set, Tuple

from formflow.logic.answer_index import answer_values, indices_to_text, is_empty_answer
from formflow.logic.dependency_graph import QuestionGraph
from formflow.logic.errors import OutOfRangeIndex
from formflow.logic.visibility_delta import compute_visibility_delta
from formflow.models.question_kind import QuestionKind
from formflow.models.records import Question

logger = logging.getLogger(__name__)


def lookup_answer(answers: Mapping[Any, Any], question_id: int) -> Any:
    """Fetch an answer keyed by int id, falling back to its string form."""
    if question_id in answers:
        return answers[question_id]
    return answers.get(str(question_id))


def empty_value_for(question: Question) -> Any:
    return [] if question.question_type in QuestionKind.MULTI_VALUED else ""


def is_child_visible(parent: Question, parent_value: Any, enabling_answers: List[int]) -> bool:
    """Return True if the parent's current answer selects an enabling option.

    An out-of-range enabling index makes the condition unsatisfiable; it is
    logged and the child stays hidden.
    """
    if not enabling_answers:
        return False
    selected = set(answer_values(parent_value))
    if not selected:
        return False
    try:
        enabling_texts = indices_to_text(parent, enabling_answers)
    except OutOfRangeIndex as exc:
        logger.warning(
            "enabling_answer_out_of_range parent_id=%s enabling=%s detail=%s",
            parent.id,
            enabling_answers,
            exc,
        )
        return False
    return not selected.isdisjoint(enabling_texts)


def compute_visible_set(graph: QuestionGraph, answers: Mapping[Any, Any]) -> Set[int]:
    """Compute the set of visible question ids.

    Walks questions in qorder, so a parent's verdict is always known before
    its follow-ups are considered.
    """
    visible: Set[int] = set()
    for q in graph.questions:
        if q.question_type not in QuestionKind.ALL:
            logger.warning("unknown_question_type_hidden question_id=%s type=%r", q.id, q.question_type)
            continue
        pid = q.parent_question_id
        if pid is None:
            visible.add(q.id)
            continue
        if pid not in visible:
            continue
        if is_child_visible(graph.question(pid), lookup_answer(answers, pid), q.enabling_answers):
            visible.add(q.id)
    return visible


def compute_visible(graph: QuestionGraph, answers: Mapping[Any, Any]) -> List[Question]:
    """Return the visible questions ordered by qorder."""
    visible = compute_visible_set(graph, answers)
    return [q for q in graph.questions if q.id in visible]


@dataclass
class VisibilityOutcome:
    answers: Dict[Any, Any]
    visible: List[Question]
    now_visible: List[int] = field(default_factory=list)
    now_hidden: List[int] = field(default_factory=list)
    cleared: List[int] = field(default_factory=list)


def apply_answer_change(
    graph: QuestionGraph,
    answers: Mapping[Any, Any],
    question_id: int,
    value: Any,
) -> VisibilityOutcome:
    """Record ``value`` for ``question_id`` and re-evaluate visibility.

    Returns a new answer mapping (the input is left untouched) in which every
    question that went from visible to hidden has its stored answer cleared.
    Follow-ups of a newly hidden question are hidden in the same pass, so the
    clearing reaches every orphaned descendant.
    """
    if question_id not in graph.by_id:
        raise KeyError(f"question {question_id} is not part of this form")
    pre = compute_visible_set(graph, answers)

    updated: Dict[Any, Any] = {k: v for k, v in answers.items() if str(k) != str(question_id)}
    updated[question_id] = value
    post = compute_visible_set(graph, updated)

    def _has_answer(qid: str) -> bool:
        return not is_empty_answer(lookup_answer(updated, int(qid)))

    now_visible, now_hidden, suppressed = compute_visibility_delta(
        (str(q) for q in pre), (str(q) for q in post), _has_answer
    )
    cleared: List[int] = []
    for qid in sorted((int(s) for s in suppressed), key=lambda i: (graph.by_id[i].qorder, i)):
        updated.pop(str(qid), None)
        updated[qid] = empty_value_for(graph.by_id[qid])
        cleared.append(qid)

    if cleared:
        logger.info(
            "hidden_answers_cleared trigger_question_id=%s cleared=%s", question_id, cleared
        )
    return VisibilityOutcome(
        answers=updated,
        visible=[q for q in graph.questions if q.id in post],
        now_visible=sorted((int(s) for s in now_visible), key=lambda i: (graph.by_id[i].qorder, i)),
        now_hidden=sorted((int(s) for s in now_hidden), key=lambda i: (graph.by_id[i].qorder, i)),
        cleared=cleared,
    )


def prune_hidden_answers(graph: QuestionGraph, answers: Mapping[Any, Any]) -> Tuple[Dict[Any, Any], List[int]]:
    """Clear the answer of every currently hidden question.

    Returns the new mapping and the ids whose non-empty answers were cleared.
    """
    visible = compute_visible_set(graph, answers)
    pruned: Dict[Any, Any] = dict(answers)
    cleared: List[int] = []
    for q in graph.questions:
        if q.id in visible:
            continue
        if is_empty_answer(lookup_answer(pruned, q.id)):
            continue
        pruned.pop(str(q.id), None)
        pruned[q.id] = empty_value_for(q)
        cleared.append(q.id)
    return pruned, cleared


__all__ = [
    "lookup_answer",
    "empty_value_for",
    "is_child_visible",
    "compute_visible_set",
    "compute_visible",
    "VisibilityOutcome",
    "apply_answer_change",
    "prune_hidden_answers",
]
