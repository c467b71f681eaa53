"""Database bootstrap utilities for the form visibility service.

Exposes the shared engine and the SQL migrations runner. The DB layer does
not leak ORM models into route handlers; repositories under
`formflow/logic/` issue SQL and return pydantic records.
"""

from formflow.db.base import get_engine, reset_engine
from formflow.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "reset_engine",
    "apply_migrations",
]
