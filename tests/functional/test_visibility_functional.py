"""Functional tests for question visibility and clearing of hidden answers.

Exercises the visible-set computation, transitive hiding of follow-ups,
and the answer-change flow that clears answers of questions an edit hid.
"""

from __future__ import annotations

import logging

import pytest

from conftest import make_question
from formflow.logic.dependency_graph import build_graph
from formflow.logic.visibility_delta import compute_visibility_delta
from formflow.logic.visibility_rules import (
    apply_answer_change,
    compute_visible,
    compute_visible_set,
    prune_hidden_answers,
)


def _colour_form():
    return build_graph(
        [
            make_question(1, 1, "multi_select", choices=["x", "y", "z"]),
            make_question(2, 2, "text_answer", parent=1, enabling=[0, 2]),
        ]
    )


def _chain_form():
    # A -> B -> C -> D, each enabled by "yes" on its parent
    return build_graph(
        [
            make_question(1, 1, "dropdown", choices=["yes", "no"]),
            make_question(2, 2, "dropdown", choices=["yes", "no"], parent=1, enabling=[0]),
            make_question(3, 3, "dropdown", choices=["yes", "no"], parent=2, enabling=[0]),
            make_question(4, 4, "text_answer", parent=3, enabling=[0]),
            make_question(5, 5, "number"),
        ]
    )


def _all_yes():
    return {1: "yes", 2: "yes", 3: "yes", 4: "hello", 5: "3"}


# ----------------------------------------------------------------------------
# Visible set
# ----------------------------------------------------------------------------


@pytest.mark.parametrize("answers", [{}, {1: "no"}, {1: "yes", 2: "no"}, {"1": "yes"}, _all_yes()])
def test_roots_are_always_visible(answers):
    visible = compute_visible_set(_chain_form(), answers)
    assert {1, 5} <= visible


@pytest.mark.parametrize(
    "parent_answer, expected",
    [
        (["y"], [1]),
        (["x"], [1, 2]),
        (["x", "z"], [1, 2]),
        (["y", "z"], [1, 2]),
        ([], [1]),
    ],
)
def test_multi_select_parent_uses_any_selected_option(parent_answer, expected):
    visible = compute_visible(_colour_form(), {1: parent_answer})
    assert [q.id for q in visible] == expected


def test_child_hidden_when_parent_hidden_even_if_own_condition_holds():
    visible = compute_visible_set(_chain_form(), {1: "no", 2: "yes", 3: "yes"})
    assert visible == {1, 5}


def test_full_chain_visible_when_every_parent_matches():
    assert [q.id for q in compute_visible(_chain_form(), _all_yes())] == [1, 2, 3, 4, 5]


def test_answers_keyed_by_string_ids_are_honoured():
    assert compute_visible_set(_chain_form(), {"1": "yes", "2": "yes"}) == {1, 2, 3, 5}


def test_out_of_range_enabling_index_makes_condition_unsatisfiable(caplog):
    caplog.set_level(logging.WARNING)
    graph = build_graph(
        [
            make_question(1, 1, "dropdown", choices=["a", "b"]),
            make_question(2, 2, parent=1, enabling=[0, 5]),
        ]
    )
    assert compute_visible_set(graph, {1: "a"}) == {1}
    assert any("enabling_answer_out_of_range" in r.getMessage() for r in caplog.records)


def test_unknown_question_type_is_hidden_with_its_follow_ups():
    graph = build_graph(
        [
            make_question(1, 1, "matrix", options='{"choices": ["a"]}'),
            make_question(2, 2, parent=1, enabling=[0]),
            make_question(3, 3),
        ]
    )
    assert compute_visible_set(graph, {1: "a"}) == {3}


def test_malformed_parent_options_hide_follow_ups_only():
    """A parent whose options cannot be parsed stays visible but enables nothing."""
    graph = build_graph(
        [
            make_question(1, 1, "dropdown", options="{broken"),
            make_question(2, 2, parent=1, enabling=[0]),
        ]
    )
    assert compute_visible_set(graph, {1: "anything"}) == {1}


def test_answer_not_matching_any_option_hides_follow_up():
    assert compute_visible_set(_chain_form(), {1: "maybe"}) == {1, 5}


# ----------------------------------------------------------------------------
# Answer change flow
# ----------------------------------------------------------------------------


def test_toggling_parent_off_clears_every_orphaned_descendant():
    graph = _chain_form()
    before = _all_yes()
    outcome = apply_answer_change(graph, before, 1, "no")

    assert outcome.now_hidden == [2, 3, 4]
    assert outcome.cleared == [2, 3, 4]
    assert outcome.answers[1] == "no"
    assert outcome.answers[2] == "" and outcome.answers[3] == "" and outcome.answers[4] == ""
    assert outcome.answers[5] == "3"
    assert [q.id for q in outcome.visible] == [1, 5]
    # The caller's mapping is untouched
    assert before == _all_yes()


def test_re_enabling_parent_reveals_only_direct_follow_up():
    graph = _chain_form()
    hidden = apply_answer_change(graph, _all_yes(), 1, "no").answers
    outcome = apply_answer_change(graph, hidden, 1, "yes")
    assert outcome.now_visible == [2]
    assert outcome.now_hidden == []
    assert outcome.cleared == []


def test_multi_select_follow_up_answer_cleared_to_empty_list():
    graph = build_graph(
        [
            make_question(1, 1, "dropdown", choices=["on", "off"]),
            make_question(2, 2, "multi_select", choices=["a", "b"], parent=1, enabling=[0]),
        ]
    )
    outcome = apply_answer_change(graph, {1: "on", 2: ["a", "b"]}, 1, "off")
    assert outcome.answers[2] == []
    assert outcome.cleared == [2]


def test_hidden_question_without_answer_is_not_cleared():
    outcome = apply_answer_change(_chain_form(), {1: "yes"}, 1, "no")
    assert outcome.now_hidden == [2]
    assert outcome.cleared == []


def test_string_keyed_answers_are_replaced_not_duplicated():
    outcome = apply_answer_change(_chain_form(), {"1": "yes", "2": "yes"}, 1, "no")
    assert "1" not in outcome.answers and "2" not in outcome.answers
    assert outcome.answers[1] == "no"
    assert outcome.answers[2] == ""


def test_unknown_question_id_raises_key_error():
    with pytest.raises(KeyError):
        apply_answer_change(_chain_form(), {}, 42, "x")


def test_prune_hidden_answers_clears_stale_values():
    pruned, cleared = prune_hidden_answers(_chain_form(), {1: "no", 2: "yes", 4: "left over", 5: "1"})
    assert cleared == [2, 4]
    assert pruned == {1: "no", 2: "", 4: "", 5: "1"}


# ----------------------------------------------------------------------------
# Delta helper
# ----------------------------------------------------------------------------


def test_visibility_delta_reports_suppressed_answers(mocker):
    has_answer = mocker.Mock(side_effect=lambda qid: qid == "3")
    now_visible, now_hidden, suppressed = compute_visibility_delta(["1", "2", "3"], [1, {"question_id": 4}], has_answer)
    assert now_visible == ["4"]
    assert now_hidden == ["2", "3"]
    assert suppressed == ["3"]
    assert has_answer.call_count == 2


def test_visibility_delta_propagates_answer_check_errors(mocker):
    has_answer = mocker.Mock(side_effect=RuntimeError("storage offline"))
    with pytest.raises(RuntimeError):
        compute_visibility_delta(["1"], [], has_answer)
