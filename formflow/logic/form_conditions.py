"""Form-level unlock conditions for modular forms.

A module groups sub-forms; a sub-form may be gated on another form by one
or more conditions:

- complete_form:   the user has submitted the dependent form
- answer_question: the user has a non-empty answer to the dependent question
- specific_answer: that answer is (or, for multi-select, contains) the option
                   at ``dependent_answer_idx``

Conditions on the same form are AND-combined. Forms are evaluated in
dependency order; a cycle among a module's forms is rejected.
"""

from __future__ import annotations

import heapq
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from formflow.logic.answer_index import answer_values, indices_to_text, is_empty_answer
from formflow.logic.errors import OutOfRangeIndex, SelfOrCyclicFormCondition
from formflow.logic.form_status import LIVE, form_status
from formflow.models.records import Form, FormCondition, Question
from formflow.models.user_state import UserState

logger = logging.getLogger(__name__)


def _dependency_order(form_ids: Iterable[int], conditions: Iterable[FormCondition]) -> List[int]:
    """Topologically sort ``form_ids`` so dependencies come first (Kahn, ties by id).

    Only edges between forms in ``form_ids`` count. Raises
    SelfOrCyclicFormCondition on a self-gating condition or a cycle.
    """
    ids = set(form_ids)
    dependents: Dict[int, Set[int]] = {fid: set() for fid in ids}
    indegree: Dict[int, int] = {fid: 0 for fid in ids}
    for c in conditions:
        if c.form_id == c.dependent_form_id:
            raise SelfOrCyclicFormCondition(
                f"form {c.form_id} cannot depend on itself", form_id=c.form_id
            )
        if c.form_id not in ids or c.dependent_form_id not in ids:
            continue
        if c.form_id not in dependents[c.dependent_form_id]:
            dependents[c.dependent_form_id].add(c.form_id)
            indegree[c.form_id] += 1

    ready = [fid for fid, deg in indegree.items() if deg == 0]
    heapq.heapify(ready)
    order: List[int] = []
    while ready:
        fid = heapq.heappop(ready)
        order.append(fid)
        for nxt in dependents[fid]:
            indegree[nxt] -= 1
            if indegree[nxt] == 0:
                heapq.heappush(ready, nxt)
    if len(order) != len(ids):
        stuck = sorted(fid for fid, deg in indegree.items() if deg > 0)
        raise SelfOrCyclicFormCondition(f"form conditions form a cycle among forms {stuck}", form_ids=stuck)
    return order


def condition_holds(
    condition: FormCondition,
    user_state: UserState,
    questions: Optional[Mapping[int, Question]] = None,
) -> bool:
    if condition.condition_type == "complete_form":
        return user_state.has_submitted(condition.dependent_form_id)

    answer = user_state.answer_for(condition.dependent_form_id, condition.dependent_question_id)
    if condition.condition_type == "answer_question":
        return not is_empty_answer(answer)

    question = (questions or {}).get(condition.dependent_question_id)
    if question is None:
        logger.warning(
            "specific_answer_question_missing condition_id=%s question_id=%s",
            condition.id,
            condition.dependent_question_id,
        )
        return False
    try:
        (expected,) = indices_to_text(question, [condition.dependent_answer_idx])
    except OutOfRangeIndex as exc:
        logger.warning("specific_answer_index_out_of_range condition_id=%s detail=%s", condition.id, exc)
        return False
    return expected in answer_values(answer)


def unlocked_forms(
    module_forms: Sequence[Form],
    conditions: Iterable[FormCondition],
    user_state: UserState,
    questions: Optional[Mapping[int, Question]] = None,
) -> Set[int]:
    """Return the ids of the module's forms the user has unlocked.

    ``questions`` maps question id to Question and is only consulted for
    specific_answer conditions.
    """
    form_ids = [f.id for f in module_forms]
    by_form: Dict[int, List[FormCondition]] = {}
    relevant: List[FormCondition] = []
    for c in conditions:
        if c.form_id not in form_ids:
            continue
        relevant.append(c)
        by_form.setdefault(c.form_id, []).append(c)

    unlocked: Set[int] = set()
    for fid in _dependency_order(form_ids, relevant):
        if all(condition_holds(c, user_state, questions) for c in by_form.get(fid, [])):
            unlocked.add(fid)
    logger.info(
        "module_forms_evaluated user_id=%s forms=%s unlocked=%s",
        user_state.user_id,
        sorted(form_ids),
        sorted(unlocked),
    )
    return unlocked


def validate_form_condition(
    condition: FormCondition,
    existing_conditions: Iterable[FormCondition],
    module_forms: Optional[Sequence[Form]] = None,
) -> None:
    """Reject a condition that gates its own form or closes a cycle.

    An existing condition with the same id is treated as being replaced.
    When ``module_forms`` is omitted, every form referenced by a condition
    takes part in cycle detection.
    """
    if condition.form_id == condition.dependent_form_id:
        raise SelfOrCyclicFormCondition(
            f"form {condition.form_id} cannot depend on itself", form_id=condition.form_id
        )
    merged = [
        c for c in existing_conditions if condition.id is None or c.id != condition.id
    ] + [condition]
    if module_forms is not None:
        ids = {f.id for f in module_forms}
    else:
        ids = {c.form_id for c in merged} | {c.dependent_form_id for c in merged}
    _dependency_order(ids, merged)


def describe_condition(
    condition: FormCondition,
    forms: Mapping[int, Form],
    questions: Optional[Mapping[int, Question]] = None,
) -> str:
    """Return the human-readable unlock requirement for a condition."""
    dep_form = forms.get(condition.dependent_form_id)
    form_name = dep_form.name if dep_form is not None else f"form {condition.dependent_form_id}"
    if condition.condition_type == "complete_form":
        return f"Must complete {form_name} to unlock"

    question = (questions or {}).get(condition.dependent_question_id)
    title = (question.question_title if question is not None else None) or f"question {condition.dependent_question_id}"
    if condition.condition_type == "answer_question":
        return f'Must answer "{title}" in {form_name} to unlock'

    option = f"option {condition.dependent_answer_idx}"
    if question is not None:
        try:
            (option,) = indices_to_text(question, [condition.dependent_answer_idx])
        except OutOfRangeIndex:
            option = f"<missing option {condition.dependent_answer_idx}>"
    return f'Must answer "{option}" to "{title}" in {form_name} to unlock'


def partition_module_forms(
    module_forms: Sequence[Form],
    conditions: Iterable[FormCondition],
    user_state: UserState,
    questions: Optional[Mapping[int, Question]] = None,
    now: Optional[datetime] = None,
    unlocked: Optional[Set[int]] = None,
) -> Dict[str, List[int]]:
    """Split the module's forms into available, completed and locked ids.

    completed: submitted by the user
    available: unlocked, not yet submitted, and Live
    locked:    everything else

    Pass ``unlocked`` when the caller already resolved it.
    """
    if unlocked is None:
        unlocked = unlocked_forms(module_forms, conditions, user_state, questions)
    out: Dict[str, List[int]] = {"available": [], "completed": [], "locked": []}
    for form in sorted(module_forms, key=lambda f: f.id):
        if user_state.has_submitted(form.id):
            out["completed"].append(form.id)
        elif form.id in unlocked and form_status(form, now) == LIVE:
            out["available"].append(form.id)
        else:
            out["locked"].append(form.id)
    return out


__all__ = [
    "condition_holds",
    "unlocked_forms",
    "validate_form_condition",
    "describe_condition",
    "partition_module_forms",
]
