"""Pre-body preconditions middleware.

Intercepts the reorder write routes and rejects requests that carry no
If-Match header with 428 PRE_IF_MATCH_MISSING, before dependency
evaluation or body parsing. Token comparison belongs to the reorder flow
(``dropdown_service.logic.items_reorder``); this layer only checks presence.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Iterable, Tuple

from fastapi import FastAPI

from dropdown_service.http.error_mapping import MISSING
from dropdown_service.http.problem import PROBLEM_MEDIA_TYPE, build_problem

logger = logging.getLogger(__name__)

_GUARDED_ROUTES = (
    ("PATCH", re.compile(r"/api/v1/categories/[^/]+/items/[^/]+/position")),
    ("POST", re.compile(r"/api/v1/categories/[^/]+/items/[^/]+/move")),
)


def requires_if_match(method: str, path: str) -> bool:
    return any(method == m and pattern.fullmatch(path) for m, pattern in _GUARDED_ROUTES)


def _headers(scope_headers: Iterable[Tuple[bytes, bytes]]) -> dict:
    return {k.decode("latin-1").lower(): v.decode("latin-1") for k, v in scope_headers}


class PreconditionsMiddleware:  # pragma: no cover - exercised by functional tests
    """ASGI middleware enforcing If-Match presence on reorder writes."""

    def __init__(self, app: FastAPI):
        self.app = app

    async def __call__(self, scope, receive, send):  # type: ignore[no-untyped-def]
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        method = str(scope.get("method") or "").upper()
        path = str(scope.get("path") or "")
        if not requires_if_match(method, path):
            await self.app(scope, receive, send)
            return

        if_match = _headers(scope.get("headers") or []).get("if-match", "")
        if if_match.strip():
            await self.app(scope, receive, send)
            return

        logger.info("precondition_missing method=%s path=%s", method, path)
        problem = build_problem(
            MISSING["status"],
            MISSING["title"],
            "If-Match header is required for reorder requests",
            code=MISSING["code"],
        )
        await send(
            {
                "type": "http.response.start",
                "status": MISSING["status"],
                "headers": [(b"content-type", PROBLEM_MEDIA_TYPE.encode("latin-1"))],
            }
        )
        await send({"type": "http.response.body", "body": json.dumps(problem).encode("utf-8"), "more_body": False})


__all__ = ["PreconditionsMiddleware", "requires_if_match"]
