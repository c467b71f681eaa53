"""Publication status of a form: Private, Scheduled or Live."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from formflow.models.records import Form

PRIVATE = "Private"
SCHEDULED = "Scheduled"
LIVE = "Live"


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def form_status(form: Form, now: Optional[datetime] = None) -> str:
    if not form.is_public:
        return PRIVATE
    if form.unlock_at is None:
        return LIVE
    now = _aware(now or datetime.now(timezone.utc))
    return SCHEDULED if _aware(form.unlock_at) > now else LIVE


__all__ = ["PRIVATE", "SCHEDULED", "LIVE", "form_status"]
