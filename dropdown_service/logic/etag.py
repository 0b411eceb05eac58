"""ETag computation helpers for dropdown item lists.

A category's list tag is a weak SHA-1 validator over its ordered
``(item_id, sort_order)`` pairs, so any reorder, insert or delete changes it
while payload-only edits (display text, active flag) do not.
"""

from __future__ import annotations

import hashlib
import logging
import re
from typing import List

from dropdown_service.logic.ordering import OrderedCollection

logger = logging.getLogger(__name__)

_WEAK_PREFIX = re.compile(r"^\s*W/\s*", re.IGNORECASE)


def compute_items_etag(category_id: str, collection: OrderedCollection) -> str:
    """Return W/"<sha1>" over the category id and its ordered item list."""
    parts = [f"category:{category_id}"]
    parts.extend(f"{it.item_id}:{int(it.sort_order)}" for it in collection)
    digest = hashlib.sha1("\n".join(parts).encode("utf-8")).hexdigest()
    return f'W/"{digest}"'


def normalize_etag_token(value: str | None) -> str:
    """Strip whitespace, a weak ``W/`` prefix and surrounding quotes."""
    if value is None:
        return ""
    v = _WEAK_PREFIX.sub("", str(value).strip())
    return v.strip().strip('"').strip()


def _split_if_match(if_match: str) -> List[str]:
    return [tok for tok in (normalize_etag_token(t) for t in if_match.split(",")) if tok]


def compare_etag(current: str | None, if_match: str | None) -> bool:
    """Return True when the If-Match value matches the current entity tag.

    Any-match semantics over comma-separated lists, weak comparison, and the
    ``*`` wildcard. Missing or blank values never match.
    """
    if if_match is None or not str(if_match).strip():
        return False
    tokens = _split_if_match(str(if_match))
    wildcard_used = "*" in tokens
    current_norm = normalize_etag_token(current)
    matched = wildcard_used or (bool(current_norm) and current_norm in tokens)
    logger.debug(
        "etag.compare current=%s tokens=%s wildcard=%s matched=%s",
        current_norm,
        len(tokens),
        wildcard_used,
        matched,
    )
    return matched


__all__ = [
    "compute_items_etag",
    "normalize_etag_token",
    "compare_etag",
]
