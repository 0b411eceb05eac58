"""Domain event constants and publisher.

Defines event type constants and a simple publish() callable used by the
category and item write flows. Published events are logged and kept in a
bounded in-process buffer; the oldest entries drop off once it is full.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, List
import logging

logger = logging.getLogger(__name__)

CATEGORY_CREATED = "dropdown_categories.created"
CATEGORY_UPDATED = "dropdown_categories.updated"
CATEGORY_DELETED = "dropdown_categories.deleted"
ITEMS_CREATED = "dropdown_items.created"
ITEM_UPDATED = "dropdown_items.updated"
ITEMS_DELETED = "dropdown_items.deleted"
ITEMS_REORDERED = "dropdown_items.reordered"

DEFAULT_BUFFER_SIZE = 1000

# In-memory buffer for domain events
EVENT_BUFFER: Deque[Dict[str, Any]] = deque(maxlen=DEFAULT_BUFFER_SIZE)


def publish(event_type: str, payload: Dict[str, Any]) -> None:
    """Publish a domain event.

    Events are logged for observability and buffered in-process so tests and
    the `/__test__/events` feed can observe them.
    """
    logger.info("event_publish type=%s payload=%s", event_type, payload)
    EVENT_BUFFER.append({"type": event_type, "payload": payload})


def configure_event_buffer(maxlen: int) -> None:
    """Rebuild the buffer with a new cap, keeping the newest ``maxlen`` events."""
    global EVENT_BUFFER
    if EVENT_BUFFER.maxlen == maxlen:
        return
    EVENT_BUFFER = deque(EVENT_BUFFER, maxlen=maxlen)


def clear_buffered_events() -> None:
    EVENT_BUFFER.clear()


def get_buffered_events(clear: bool = True) -> List[Dict[str, Any]]:
    """Return buffered domain events; optionally clear the buffer."""
    events = list(EVENT_BUFFER)
    if clear:
        EVENT_BUFFER.clear()
    return events


__all__ = [
    "CATEGORY_CREATED",
    "CATEGORY_UPDATED",
    "CATEGORY_DELETED",
    "ITEMS_CREATED",
    "ITEM_UPDATED",
    "ITEMS_DELETED",
    "ITEMS_REORDERED",
    "DEFAULT_BUFFER_SIZE",
    "publish",
    "configure_event_buffer",
    "clear_buffered_events",
    "get_buffered_events",
]
