"""CORS configuration helpers.

Applies CORS with the ETag and request-id headers exposed to browsers.
"""

from __future__ import annotations

from typing import Iterable
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dropdown_service.logic.header_emitter import EXPOSED_ETAG_HEADERS


EXPOSE_HEADERS: list[str] = [*EXPOSED_ETAG_HEADERS, "X-Request-Id"]


def apply_cors(app: FastAPI, *, origins: Iterable[str] | None = None) -> None:
    allowed = list(origins or ["*"])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed,
        # Credentials cannot be combined with a wildcard origin
        allow_credentials="*" not in allowed,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=EXPOSE_HEADERS,
    )


__all__ = ["apply_cors", "EXPOSE_HEADERS"]
