"""Authoring order helpers for moving a question up or down within its form.

A move swaps ``qorder`` with the adjacent question. Moves that would put a
follow-up at or above its parent are rejected, so the dependency graph
stays valid after every reorder.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from formflow.logic.errors import InvalidDependencyOrder
from formflow.models.records import Question

logger = logging.getLogger(__name__)

UP = "up"
DOWN = "down"


def plan_move(questions: Sequence[Question], question_id: int, direction: str) -> List[Tuple[int, int]]:
    """Return the ``(question_id, new_qorder)`` updates for a one-step move.

    Raises ValueError for an unknown id or direction, when the question is
    already first/last, or when it shares a qorder with its neighbour (the
    swap would change nothing). Raises InvalidDependencyOrder when the swap would
    place a follow-up at or above its parent.
    """
    if direction not in (UP, DOWN):
        raise ValueError(f"direction must be '{UP}' or '{DOWN}'")
    ordered = sorted(questions, key=lambda q: (q.qorder, q.id))
    pos = next((i for i, q in enumerate(ordered) if q.id == question_id), None)
    if pos is None:
        raise ValueError(f"question {question_id} not found")

    if direction == UP:
        if pos == 0:
            raise ValueError("Question is already at the top")
        upper, lower = ordered[pos - 1], ordered[pos]
    else:
        if pos == len(ordered) - 1:
            raise ValueError("Question is already at the bottom")
        upper, lower = ordered[pos], ordered[pos + 1]

    # After the swap ``lower`` sits above ``upper``
    if lower.parent_question_id == upper.id:
        msg = (
            "Follow-up question cannot be moved above parent question"
            if direction == UP
            else "Cannot move question below its follow-up"
        )
        raise InvalidDependencyOrder(msg, question_id=lower.id, parent_question_id=upper.id)

    if upper.qorder == lower.qorder:
        raise ValueError(f"questions {upper.id} and {lower.id} share qorder {upper.qorder}; renumber the form first")

    updates = [(lower.id, upper.qorder), (upper.id, lower.qorder)]
    logger.info("question_move_planned question_id=%s direction=%s updates=%s", question_id, direction, updates)
    return updates


__all__ = ["UP", "DOWN", "plan_move"]
