"""Centralised ETag header emitter.

Sets the domain-specific ETag header and the generic `ETag` header so route
handlers never assign validator headers directly.
"""

from __future__ import annotations

import logging
from fastapi import Response

logger = logging.getLogger(__name__)


SCOPE_TO_HEADER = {
    "items": "Items-ETag",
}

EXPOSED_ETAG_HEADERS = ["ETag", *SCOPE_TO_HEADER.values()]


def emit_etag_headers(response: Response, scope: str, token: str, include_generic: bool = True) -> None:
    """Set domain and generic ETag headers on the response.

    - `scope`: one of SCOPE_TO_HEADER keys
    - `token`: the entity tag value to set; blank tokens are never emitted
    - `include_generic`: when True, also set `ETag` alongside the domain header
    """
    header_name = SCOPE_TO_HEADER.get(scope)
    if header_name is None:
        raise ValueError(f"unknown etag scope: {scope}")
    token_str = str(token or "").strip()
    if not token_str:
        logger.warning("emit_etag_headers_skipped_blank scope=%s", scope)
        return
    response.headers[header_name] = token_str
    if include_generic:
        response.headers["ETag"] = token_str
    # Advertise validator headers to browsers, preserving any existing entries
    existing = response.headers.get("Access-Control-Expose-Headers", "")
    merged: list[str] = []
    for name in EXPOSED_ETAG_HEADERS + [t.strip() for t in str(existing).split(",") if t.strip()]:
        if name not in merged:
            merged.append(name)
    response.headers["Access-Control-Expose-Headers"] = ", ".join(merged)


__all__ = ["SCOPE_TO_HEADER", "EXPOSED_ETAG_HEADERS", "emit_etag_headers"]
