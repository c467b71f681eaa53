"""Functional tests for module sub-form unlocking and form condition validation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from conftest import make_condition, make_form, make_question
from formflow.logic import form_conditions
from formflow.logic.errors import SelfOrCyclicFormCondition
from formflow.logic.form_conditions import (
    condition_holds,
    describe_condition,
    partition_module_forms,
    unlocked_forms,
    validate_form_condition,
)
from formflow.logic.form_status import LIVE, PRIVATE, SCHEDULED, form_status
from formflow.models.user_state import UserState

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _module():
    return [
        make_form(11, "Intro", module_id=10),
        make_form(12, "Habits", module_id=10),
        make_form(13, "Follow up", module_id=10),
    ]


def _colour_question():
    return make_question(100, 1, "multi_select", form_id=11, choices=["red", "green", "blue"], title="Favourite colours")


# ----------------------------------------------------------------------------
# Single conditions
# ----------------------------------------------------------------------------


def test_complete_form_condition_unlocks_after_submission():
    conditions = [make_condition(1, 12, "complete_form", 11)]
    assert unlocked_forms(_module(), conditions, UserState("u1")) == {11, 13}
    assert unlocked_forms(_module(), conditions, UserState("u1", submitted_form_ids={11})) == {11, 12, 13}


@pytest.mark.parametrize("answer, expected", [("hi", True), ("", False), (["", " "], False), (None, False), (["a"], True)])
def test_answer_question_condition_requires_non_empty_answer(answer, expected):
    condition = make_condition(1, 13, "answer_question", 11, dependent_question_id=100)
    answers = {(11, 100): answer} if answer is not None else {}
    assert condition_holds(condition, UserState("u1", answers=answers)) is expected


@pytest.mark.parametrize(
    "answer, expected",
    [(["red", "green"], True), (["red"], False), ("green", True), ([], False)],
)
def test_specific_answer_matches_option_at_index(answer, expected):
    condition = make_condition(1, 13, "specific_answer", 11, dependent_question_id=100, dependent_answer_idx=1)
    state = UserState("u1", answers={(11, 100): answer})
    assert condition_holds(condition, state, {100: _colour_question()}) is expected


def test_specific_answer_with_out_of_range_index_never_holds():
    condition = make_condition(1, 13, "specific_answer", 11, dependent_question_id=100, dependent_answer_idx=9)
    state = UserState("u1", answers={(11, 100): ["red", "green", "blue"]})
    assert condition_holds(condition, state, {100: _colour_question()}) is False


def test_specific_answer_with_missing_question_never_holds():
    condition = make_condition(1, 13, "specific_answer", 11, dependent_question_id=100, dependent_answer_idx=0)
    assert condition_holds(condition, UserState("u1", answers={(11, 100): "red"}), {}) is False


def test_conditions_on_one_form_are_and_combined():
    conditions = [
        make_condition(1, 13, "complete_form", 11),
        make_condition(2, 13, "answer_question", 12, dependent_question_id=200),
    ]
    only_submitted = UserState("u1", submitted_form_ids={11})
    both = UserState("u1", submitted_form_ids={11}, answers={(12, 200): "done"})
    assert 13 not in unlocked_forms(_module(), conditions, only_submitted)
    assert 13 in unlocked_forms(_module(), conditions, both)


def test_conditions_for_forms_outside_module_are_ignored():
    conditions = [make_condition(1, 99, "complete_form", 11)]
    assert unlocked_forms(_module(), conditions, UserState("u1")) == {11, 12, 13}


def test_dependency_on_form_outside_module_is_evaluated():
    conditions = [make_condition(1, 12, "complete_form", 50)]
    assert 12 in unlocked_forms(_module(), conditions, UserState("u1", submitted_form_ids={50}))


# ----------------------------------------------------------------------------
# Cycles and validation
# ----------------------------------------------------------------------------


def test_cycle_in_module_is_rejected_during_evaluation():
    conditions = [make_condition(1, 12, "complete_form", 11), make_condition(2, 11, "complete_form", 12)]
    with pytest.raises(SelfOrCyclicFormCondition) as info:
        unlocked_forms(_module(), conditions, UserState("u1"))
    assert info.value.context["form_ids"] == [11, 12]


def test_validate_rejects_self_gating_condition():
    with pytest.raises(SelfOrCyclicFormCondition):
        validate_form_condition(make_condition(None, 12, "complete_form", 12), [])


def test_validate_rejects_condition_closing_a_cycle():
    existing = [make_condition(1, 12, "complete_form", 11), make_condition(2, 13, "complete_form", 12)]
    with pytest.raises(SelfOrCyclicFormCondition):
        validate_form_condition(make_condition(None, 11, "complete_form", 13), existing, _module())


def test_validate_accepts_acyclic_condition():
    existing = [make_condition(1, 12, "complete_form", 11)]
    validate_form_condition(make_condition(None, 13, "complete_form", 12), existing, _module())


def test_validate_treats_same_id_as_replacement():
    """Editing a condition in place does not collide with its old edge."""
    existing = [make_condition(1, 12, "complete_form", 11)]
    validate_form_condition(make_condition(1, 11, "complete_form", 12), existing)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"condition_type": "answer_question"},
        {"condition_type": "specific_answer", "dependent_question_id": 100},
        {"condition_type": "answer_question", "dependent_question_id": 100, "dependent_answer_idx": 0},
        {"condition_type": "specific_answer", "dependent_question_id": 100, "dependent_answer_idx": -1},
        {"condition_type": "unknown"},
    ],
)
def test_condition_shape_is_validated(kwargs):
    with pytest.raises(ValidationError):
        make_condition(None, 12, dependent_form_id=11, **kwargs)


# ----------------------------------------------------------------------------
# Descriptions and partitioning
# ----------------------------------------------------------------------------


def test_condition_descriptions():
    forms = {f.id: f for f in _module()}
    questions = {100: _colour_question()}
    assert describe_condition(make_condition(1, 12, "complete_form", 11), forms) == "Must complete Intro to unlock"
    assert (
        describe_condition(make_condition(2, 13, "answer_question", 11, dependent_question_id=100), forms, questions)
        == 'Must answer "Favourite colours" in Intro to unlock'
    )
    assert (
        describe_condition(
            make_condition(3, 13, "specific_answer", 11, dependent_question_id=100, dependent_answer_idx=2),
            forms,
            questions,
        )
        == 'Must answer "blue" to "Favourite colours" in Intro to unlock'
    )


def test_partition_separates_available_completed_and_locked():
    forms = _module()
    forms[2] = make_form(13, "Follow up", module_id=10, unlock_at=NOW + timedelta(days=1))
    conditions = [make_condition(1, 12, "complete_form", 11)]
    state = UserState("u1", submitted_form_ids={11})
    parts = partition_module_forms(forms, conditions, state, now=NOW)
    assert parts == {"available": [12], "completed": [11], "locked": [13]}


def test_partition_locks_private_forms():
    forms = [make_form(11, module_id=10, is_public=False), make_form(12, module_id=10)]
    parts = partition_module_forms(forms, [], UserState("u1"), now=NOW)
    assert parts == {"available": [12], "completed": [], "locked": [11]}


def test_partition_reuses_precomputed_unlocked_set(mocker):
    spy = mocker.spy(form_conditions, "unlocked_forms")
    forms = _module()
    parts = partition_module_forms(forms, [], UserState("u1"), now=NOW, unlocked={11})
    assert spy.call_count == 0
    assert parts == {"available": [11], "completed": [], "locked": [12, 13]}


@pytest.mark.parametrize(
    "kwargs, expected",
    [
        ({"is_public": False}, PRIVATE),
        ({"is_public": False, "unlock_at": NOW - timedelta(days=1)}, PRIVATE),
        ({"unlock_at": NOW + timedelta(hours=1)}, SCHEDULED),
        ({"unlock_at": NOW - timedelta(hours=1)}, LIVE),
        ({"unlock_at": datetime(2026, 3, 1, 13, 0)}, SCHEDULED),
        ({}, LIVE),
    ],
)
def test_form_status(kwargs, expected):
    assert form_status(make_form(1, **kwargs), NOW) == expected
