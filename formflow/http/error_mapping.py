"""Central error mapping from engine error codes to HTTP problem statuses.

Single source of truth for turning a FormDependencyError (or a verdict
code) into a problem+json ``code`` and status. Route modules import from
here instead of hardcoding numbers.
"""

from __future__ import annotations

from formflow.logic.errors import (
    MISSING_REQUIRED_FIELD,
    InvalidDependencyOrder,
    OutOfRangeIndex,
    SelfOrCyclicFormCondition,
)

ERROR_STATUS_MAP = {
    InvalidDependencyOrder.code: {"title": "Invalid Question Dependency", "status": 422},
    OutOfRangeIndex.code: {"title": "Option Index Out Of Range", "status": 422},
    SelfOrCyclicFormCondition.code: {"title": "Self Or Cyclic Form Condition", "status": 409},
    MISSING_REQUIRED_FIELD: {"title": "Missing Required Field", "status": 422},
    "INVALID_ANSWER": {"title": "Invalid Answer", "status": 422},
    "NOT_FOUND": {"title": "Not Found", "status": 404},
    "INVALID_MOVE": {"title": "Invalid Move", "status": 400},
    "TOO_MANY_QUESTIONS": {"title": "Too Many Questions", "status": 422},
}


def problem_for(code: str, detail: str, **extra: object) -> dict:
    """Build a problem+json body for ``code``; unknown codes map to 500."""
    entry = ERROR_STATUS_MAP.get(code, {"title": "Internal Server Error", "status": 500})
    body = {"title": entry["title"], "status": entry["status"], "detail": detail, "code": code}
    body.update(extra)
    return body


__all__ = ["ERROR_STATUS_MAP", "problem_for"]
