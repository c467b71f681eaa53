"""FastAPI application factory for the form visibility service."""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from formflow.config import load_config
from formflow.db.base import get_engine
from formflow.db.migrations_runner import apply_migrations
from formflow.http.problem import (
    handle_form_dependency_error,
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from formflow.http.request_id import RequestIdMiddleware
from formflow.logic.errors import FormDependencyError
from formflow.logging_setup import configure_logging
from formflow.routes import api_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def _health_check() -> Callable[[], dict]:
    def check() -> dict:
        try:
            with get_engine().connect() as conn:
                conn.execute(sql_text("SELECT 1"))
            return {"status": "ok", "db": True}
        except SQLAlchemyError as e:
            logger.error("Health DB check failed", exc_info=True)
            return {"status": "degraded", "db": False, "reason": str(e)}

    return check


def create_app() -> FastAPI:
    configure_logging()
    cfg = load_config()
    app = FastAPI(title="Form Visibility Service", version="0.1.0")

    if cfg.database.auto_apply_migrations:
        apply_migrations(get_engine(cfg.database.dsn))

    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(FormDependencyError, handle_form_dependency_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router, prefix=API_PREFIX)
    check = _health_check()
    app.add_api_route("/health", lambda: check(), methods=["GET"], tags=["Health"])

    logger.info("app_created prefix=%s clear_hidden_answers=%s", API_PREFIX, cfg.visibility.clear_hidden_answers)
    return app


__all__ = ["create_app", "API_PREFIX"]
