"""Problem+JSON utilities and global exception handlers.

Defines the RFC 7807 media type and the handler callables that produce
application/problem+json responses for HTTP, validation, domain and
unexpected errors.
"""

from __future__ import annotations

from typing import Any, Dict
import logging
from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from dropdown_service.http.error_mapping import status_for
from dropdown_service.logic.errors import OrderingError, PreconditionFailedError
from dropdown_service.logic.header_emitter import emit_etag_headers

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def build_problem(status: int, title: str, detail: str = "", code: str | None = None, **extra: Any) -> Dict[str, Any]:
    problem: Dict[str, Any] = {"title": title, "status": int(status)}
    if detail:
        problem["detail"] = detail
    if code:
        problem["code"] = code
    problem.update(extra)
    return problem


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    if isinstance(exc.detail, dict):
        detail = exc.detail
    else:
        detail = build_problem(exc.status_code, "Error", str(exc.detail or ""))
    headers = {str(k): str(v) for k, v in (exc.headers or {}).items()}
    return JSONResponse(
        detail,
        status_code=int(exc.status_code),
        media_type=PROBLEM_MEDIA_TYPE,
        headers=headers or None,
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    problem = build_problem(
        422,
        "Invalid Request",
        "Request validation failed",
        code="REQUEST_VALIDATION_FAILED",
        errors=jsonable_encoder(exc.errors()),
    )
    return JSONResponse(problem, status_code=422, media_type=PROBLEM_MEDIA_TYPE)


async def handle_ordering_error(request: Request, exc: OrderingError) -> JSONResponse:  # noqa: D401
    status, title = status_for(exc)
    if status >= 500:
        logger.error("ordering_error code=%s path=%s context=%s", exc.code, request.url.path, exc.context, exc_info=exc)
    else:
        logger.info("ordering_error code=%s status=%s path=%s", exc.code, status, request.url.path)
    context = {k: v for k, v in exc.context.items() if k != "current_etag"}
    problem = build_problem(status, title, exc.message, code=exc.code, **jsonable_encoder(context))
    response = JSONResponse(problem, status_code=status, media_type=PROBLEM_MEDIA_TYPE)
    # A stale If-Match still tells the caller which list state is current
    if isinstance(exc, PreconditionFailedError):
        emit_etag_headers(response, scope="items", token=str(exc.context.get("current_etag") or ""))
    return response


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return JSONResponse(
        build_problem(500, "Internal Server Error"),
        status_code=500,
        media_type=PROBLEM_MEDIA_TYPE,
    )


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "build_problem",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_ordering_error",
    "handle_unexpected_error",
]
