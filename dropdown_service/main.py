from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from dropdown_service.config import AppConfig, load_config
from dropdown_service.db.base import get_engine
from dropdown_service.db.migrations_runner import apply_migrations
from dropdown_service.http.problem import (
    handle_http_exception,
    handle_ordering_error,
    handle_request_validation_error,
    handle_unexpected_error,
)
from dropdown_service.http.request_id import RequestIdMiddleware
from dropdown_service.logging_setup import configure_logging
from dropdown_service.logic.errors import OrderingError
from dropdown_service.logic.events import configure_event_buffer
from dropdown_service.middleware.cors import apply_cors
from dropdown_service.middleware.preconditions import PreconditionsMiddleware
from dropdown_service.routes import api_router
from dropdown_service.routes.test_support import router as test_support_router

logger = logging.getLogger(__name__)


def _health_check() -> dict:
    try:
        with get_engine().connect() as conn:
            conn.execute(sql_text("SELECT 1"))
        return {"status": "ok", "db": True}
    except SQLAlchemyError:
        logger.error("health_check_db_unreachable", exc_info=True)
        return {"status": "degraded", "db": False}


def create_app(config: AppConfig | None = None) -> FastAPI:
    cfg = config or load_config()
    configure_logging(cfg.logging.level)

    app = FastAPI(title="Survey Hub Dropdowns")
    app.state.config = cfg
    get_engine(cfg.database.dsn)
    configure_event_buffer(cfg.service.event_buffer_size)

    # Last added runs first: request id, CORS, then the If-Match presence check
    app.add_middleware(PreconditionsMiddleware)
    apply_cors(app, origins=cfg.service.cors_origins)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(OrderingError, handle_ordering_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    # Apply migrations on startup to avoid import-time side effects
    @app.on_event("startup")
    def _apply_migrations() -> None:
        if not cfg.service.auto_apply_migrations:
            logger.info("AUTO_APPLY_MIGRATIONS disabled; skipping migrations at startup")
            return
        try:
            applied = apply_migrations(get_engine())
        except Exception:
            logger.error("Failed to apply migrations at startup", exc_info=True)
            raise
        logger.info("startup_migrations applied=%s", applied)

    app.include_router(api_router, prefix="/api/v1")
    # Test-support routes stay unprefixed and exist only when switched on
    if cfg.service.enable_test_support:
        app.include_router(test_support_router)
        logger.warning("test_support_routes_enabled")

    @app.get("/health")
    def health() -> dict:  # pragma: no cover - trivial
        return _health_check()

    logger.info(
        "app_created base=%s compact_on_delete=%s repair_on_reorder=%s",
        cfg.ordering.base,
        cfg.ordering.compact_on_delete,
        cfg.ordering.repair_on_reorder,
    )
    return app


# Intentionally do not instantiate the app at import time to prevent side effects.
