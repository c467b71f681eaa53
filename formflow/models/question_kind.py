"""QuestionKind constants for the question types a form may contain.

Provides a simple constants container instead of an Enum to keep imports
lightweight in architectural tests.
"""

from __future__ import annotations


class QuestionKind:
    TEXT_ANSWER = "text_answer"
    MULTIPLE_CHOICE = "multiple_choice"
    MULTI_SELECT = "multi_select"
    DROPDOWN = "dropdown"
    LINEAR_SCALE = "linear_scale"
    NUMBER = "number"
    TEXTAREA = "textarea"
    CHECKBOX = "checkbox"

    ALL = frozenset(
        {
            TEXT_ANSWER,
            MULTIPLE_CHOICE,
            MULTI_SELECT,
            DROPDOWN,
            LINEAR_SCALE,
            NUMBER,
            TEXTAREA,
            CHECKBOX,
        }
    )
    # Types whose answers can be mapped back to option indices
    CHOICE_BEARING = frozenset({MULTIPLE_CHOICE, MULTI_SELECT, DROPDOWN, LINEAR_SCALE})
    MULTI_VALUED = frozenset({MULTI_SELECT})


__all__ = ["QuestionKind"]
