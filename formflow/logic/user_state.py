"""Hydrate a UserState for a module from the repositories.

Keeps route handlers orchestration-focused: they pass an explicit user id
and receive the submissions and answers the form dependency resolver needs.
"""

from __future__ import annotations

import logging
from typing import Iterable

from formflow.logic.repository_answers import list_answers_for_forms
from formflow.logic.repository_forms import submitted_form_ids
from formflow.models.user_state import UserState

logger = logging.getLogger(__name__)


def load_user_state(user_id: str, form_ids: Iterable[int]) -> UserState:
    ids = sorted({int(i) for i in form_ids})
    state = UserState(
        user_id=str(user_id),
        submitted_form_ids=submitted_form_ids(user_id, ids),
        answers=list_answers_for_forms(user_id, ids),
    )
    logger.info(
        "user_state_loaded user_id=%s forms=%s submitted=%s answers=%s",
        user_id,
        ids,
        sorted(state.submitted_form_ids),
        len(state.answers),
    )
    return state


__all__ = ["load_user_state"]
