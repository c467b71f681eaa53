"""Helpers to compute visibility deltas and suppressed answers.

Exposes a single function that computes now_visible, now_hidden, and the list
of suppressed answers using a caller-provided answer-existence check.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Tuple


def _coerce_id(item: Any) -> str | None:
    """Normalize a question id, a (id, ...) tuple or a {"question_id": ...} dict to a string."""
    if isinstance(item, dict):
        item = item.get("question_id") or item.get("id")
    elif isinstance(item, (list, tuple)):
        item = item[0] if item else None
    if item is None:
        return None
    sid = str(item).strip()
    return sid or None


def compute_visibility_delta(
    pre_visible: Iterable[Any],
    post_visible: Iterable[Any],
    has_answer: Callable[[str], bool],
) -> Tuple[List[str], List[str], List[str]]:
    """Compute visibility delta and suppressed answers.

    - now_visible: questions newly visible (in post but not in pre)
    - now_hidden: questions newly hidden (in pre but not in post)
    - suppressed_answers: subset of now_hidden that currently have stored answers

    The has_answer callable should return True if a given question_id currently
    has a stored answer. Exceptions raised by the callable propagate so callers
    keep their own logging semantics.
    """
    pre_set = {qid for qid in (_coerce_id(x) for x in pre_visible) if qid}
    post_set = {qid for qid in (_coerce_id(x) for x in post_visible) if qid}

    now_visible = sorted(post_set - pre_set)
    now_hidden = sorted(pre_set - post_set)
    suppressed_answers = [qid for qid in now_hidden if has_answer(qid)]
    return now_visible, now_hidden, suppressed_answers


__all__ = ["compute_visibility_delta"]
