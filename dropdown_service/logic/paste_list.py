"""Parsing for the "paste a list" bulk item import.

One item per line; surrounding whitespace is trimmed and blank lines are
ignored. Order of the input lines is preserved.
"""

from __future__ import annotations

from typing import List

from dropdown_service.logic.errors import OrderValidationError

MAX_PASTED_ITEMS = 500


def parse_pasted_list(text: str) -> List[str]:
    lines = [line.strip() for line in str(text or "").splitlines()]
    entries = [line for line in lines if line]
    if not entries:
        raise OrderValidationError("pasted list contains no items", field="text")
    if len(entries) > MAX_PASTED_ITEMS:
        raise OrderValidationError(
            f"pasted list exceeds {MAX_PASTED_ITEMS} items",
            field="text",
            item_count=len(entries),
        )
    return entries


__all__ = ["MAX_PASTED_ITEMS", "parse_pasted_list"]
