"""Error taxonomy for the visibility and form dependency engine.

Each error carries a stable ``code`` token so HTTP handlers can map it to a
problem+json status via ``formflow.http.error_mapping`` without string
matching on messages.
"""

from __future__ import annotations


class FormDependencyError(ValueError):
    code = "FORM_DEPENDENCY_ERROR"

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.context = context


class InvalidDependencyOrder(FormDependencyError):
    """A question's parent is missing, from another form, or not strictly earlier."""

    code = "INVALID_DEPENDENCY_ORDER"


class OutOfRangeIndex(FormDependencyError, IndexError):
    """An enabling-answer index has no matching option on the parent question."""

    code = "OUT_OF_RANGE_INDEX"


class SelfOrCyclicFormCondition(FormDependencyError):
    """A form condition gates its own form or closes a cycle inside a module."""

    code = "SELF_OR_CYCLIC_FORM_CONDITION"


# Reported as data by the submission validator; never raised.
MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"


__all__ = [
    "FormDependencyError",
    "InvalidDependencyOrder",
    "OutOfRangeIndex",
    "SelfOrCyclicFormCondition",
    "MISSING_REQUIRED_FIELD",
]
