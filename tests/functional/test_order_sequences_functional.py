"""Functional tests for moving questions up and down within a form."""

from __future__ import annotations

import pytest

from conftest import make_question
from formflow.logic.dependency_graph import build_graph
from formflow.logic.errors import InvalidDependencyOrder
from formflow.logic.order_sequences import DOWN, UP, plan_move


def _questions():
    return [
        make_question(1, 10, "dropdown", choices=["a", "b"]),
        make_question(2, 20, parent=1, enabling=[0]),
        make_question(3, 30),
    ]


def _apply(questions, updates):
    qorders = dict(updates)
    return [q.model_copy(update={"qorder": qorders.get(q.id, q.qorder)}) for q in questions]


def test_move_up_swaps_with_previous_question():
    updates = plan_move(_questions(), 3, UP)
    assert updates == [(3, 20), (2, 30)]
    build_graph(_apply(_questions(), updates))


def test_move_down_swaps_with_next_question():
    assert plan_move(_questions(), 2, DOWN) == [(3, 20), (2, 30)]


def test_follow_up_cannot_move_above_its_parent():
    with pytest.raises(InvalidDependencyOrder, match="above parent"):
        plan_move(_questions(), 2, UP)


def test_parent_cannot_move_below_its_follow_up():
    with pytest.raises(InvalidDependencyOrder, match="below its follow-up"):
        plan_move(_questions(), 1, DOWN)


@pytest.mark.parametrize(
    "question_id, direction, message",
    [
        (1, UP, "already at the top"),
        (3, DOWN, "already at the bottom"),
        (9, UP, "not found"),
        (1, "sideways", "direction"),
    ],
)
def test_invalid_moves_raise_value_error(question_id, direction, message):
    with pytest.raises(ValueError, match=message):
        plan_move(_questions(), question_id, direction)


def test_neighbours_sharing_a_qorder_cannot_be_swapped():
    questions = [make_question(1, 1), make_question(2, 1)]
    with pytest.raises(ValueError, match="share qorder"):
        plan_move(questions, 1, DOWN)
