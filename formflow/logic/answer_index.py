"""Answer index resolution for choice-bearing questions.

Answers are stored as the literal chosen option text, while follow-up
questions and form conditions reference options by index. These helpers
translate between the two against a question's parsed options.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Set

from formflow.logic.errors import OutOfRangeIndex
from formflow.logic.options_category import options_for
from formflow.models.records import Question


def answer_values(value: Any) -> List[str]:
    """Normalise a stored answer into its list of non-empty text values.

    - None / blank string -> []
    - string -> [string]
    - sequence -> each non-blank item as a string, order preserved
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(v) for v in value if v is not None and str(v).strip() != ""]
    text = str(value)
    return [text] if text.strip() != "" else []


def is_empty_answer(value: Any) -> bool:
    return not answer_values(value)


def choices_for(question: Question) -> List[str]:
    return list(options_for(question).choices)


def resolve_option_text(question: Question, answer_value: Any) -> Optional[str]:
    """Return the option text an answer refers to, or None.

    The stored value is already option text; this confirms it is one of the
    question's current choices. For multi-valued answers the first matching
    value is returned.
    """
    choices = choices_for(question)
    if not choices:
        return None
    for value in answer_values(answer_value):
        if value in choices:
            return value
    return None


def indices_to_text(question: Question, indices: Iterable[int]) -> List[str]:
    """Map option indices onto ``question``'s choices, preserving order.

    Raises OutOfRangeIndex for any index outside the choice list. Callers
    evaluating visibility treat that as an unsatisfiable condition.
    """
    choices = choices_for(question)
    texts: List[str] = []
    for idx in indices:
        i = int(idx)
        if i < 0 or i >= len(choices):
            raise OutOfRangeIndex(
                f"option index {i} out of range for question {question.id} with {len(choices)} choices",
                question_id=question.id,
                index=i,
            )
        texts.append(choices[i])
    return texts


def answer_to_indices(question: Question, answer_value: Any) -> Set[int]:
    """Reverse lookup of a stored answer into the option indices it selects.

    Duplicate option texts map to every matching index. Values that are not
    current choices contribute nothing.
    """
    choices = choices_for(question)
    selected = set(answer_values(answer_value))
    return {i for i, text in enumerate(choices) if text in selected}


__all__ = [
    "answer_values",
    "is_empty_answer",
    "choices_for",
    "resolve_option_text",
    "indices_to_text",
    "answer_to_indices",
]
