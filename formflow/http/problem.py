"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type and the handlers registered on the app so
every non-2xx response is ``application/problem+json``.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from formflow.http.error_mapping import problem_for
from formflow.logic.errors import FormDependencyError

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def problem_response(problem: dict) -> JSONResponse:
    return JSONResponse(jsonable_encoder(problem), status_code=int(problem["status"]), media_type=PROBLEM_MEDIA_TYPE)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    if isinstance(exc.detail, dict):
        detail = dict(exc.detail)
        detail.setdefault("status", exc.status_code)
    else:
        detail = {"title": "Error", "status": exc.status_code, "detail": str(exc.detail)}
    return JSONResponse(
        jsonable_encoder(detail),
        status_code=exc.status_code,
        media_type=PROBLEM_MEDIA_TYPE,
        headers=getattr(exc, "headers", None),
    )


async def handle_form_dependency_error(request: Request, exc: FormDependencyError) -> JSONResponse:  # noqa: D401
    logger.info("form_dependency_error code=%s path=%s detail=%s", exc.code, request.url.path, exc)
    return problem_response(problem_for(exc.code, str(exc), context=exc.context))


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    problem = {
        "title": "Invalid Request",
        "status": 422,
        "detail": "Request validation failed",
        "code": "REQUEST_VALIDATION_FAILED",
        "errors": exc.errors(),
    }
    return problem_response(problem)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return JSONResponse({"title": "Internal Server Error", "status": 500}, status_code=500, media_type=PROBLEM_MEDIA_TYPE)


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem_response",
    "handle_http_exception",
    "handle_form_dependency_error",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
