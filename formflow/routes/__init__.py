"""APIRouter registration for the form visibility service."""

from __future__ import annotations

from fastapi import APIRouter

from formflow.routes.authoring import router as authoring_router
from formflow.routes.modules import router as modules_router
from formflow.routes.responses import router as responses_router

api_router = APIRouter()
api_router.include_router(authoring_router, tags=["Authoring"])
api_router.include_router(responses_router, tags=["Responses"])
api_router.include_router(modules_router, tags=["Modules"])

__all__ = ["api_router"]
