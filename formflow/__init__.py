"""Form visibility and module dependency service.

The engine under `formflow/logic/` decides which questions of a form are
visible for a set of answers, which sub-forms of a module a user has
unlocked, and whether a submission is complete. The FastAPI application
built by `create_app` wraps it with persistence and HTTP routes.
"""

from __future__ import annotations

from formflow.main import create_app

__all__ = ["create_app"]
