"""Per-user state consulted when deciding which module sub-forms are unlocked."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Set, Tuple


@dataclass
class UserState:
    user_id: str
    submitted_form_ids: Set[int] = field(default_factory=set)
    # (form_id, question_id) -> stored answer value
    answers: Dict[Tuple[int, int], Any] = field(default_factory=dict)

    def has_submitted(self, form_id: int) -> bool:
        return int(form_id) in self.submitted_form_ids

    def answer_for(self, form_id: int, question_id: int) -> Any:
        return self.answers.get((int(form_id), int(question_id)))


__all__ = ["UserState"]
