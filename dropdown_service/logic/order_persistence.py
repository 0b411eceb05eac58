"""Durable application of sort-order deltas.

Writes run on the caller's transactional connection (``engine.begin()``), so
a batch is all-or-nothing: any exception raised here propagates out of the
caller's ``with`` block and rolls every row back.

Each row update is a compare-and-swap keyed on the order the delta was
planned from. If another writer moved the row first, the update matches no
row and the batch fails with ``ConflictError`` instead of silently
corrupting the dense sequence.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from dropdown_service.logic.errors import ConflictError, PersistenceError
from dropdown_service.logic.ordering import OrderDelta

logger = logging.getLogger(__name__)

_CAS_UPDATE = sql_text(
    "UPDATE dropdown_items SET sort_order = :new, updated_at = CURRENT_TIMESTAMP "
    "WHERE id = :id AND category_id = :cid AND sort_order = :old"
)


def apply_order_deltas(conn: Connection, category_id: str, deltas: Sequence[OrderDelta]) -> int:
    """Persist ``deltas`` for one category; return the number of rows written.

    An empty sequence performs no statement at all.
    """
    if not deltas:
        return 0
    written = 0
    for delta in deltas:
        try:
            result = conn.execute(
                _CAS_UPDATE,
                {
                    "new": int(delta.new_order),
                    "id": str(delta.item_id),
                    "cid": str(category_id),
                    "old": int(delta.old_order),
                },
            )
        except SQLAlchemyError as exc:
            logger.error(
                "apply_order_deltas write failed category_id=%s item_id=%s",
                category_id,
                delta.item_id,
                exc_info=True,
            )
            raise PersistenceError(
                "failed to persist sort order change",
                category_id=str(category_id),
                item_id=delta.item_id,
            ) from exc
        if result.rowcount != 1:
            logger.warning(
                "apply_order_deltas cas_miss category_id=%s item_id=%s expected_order=%s",
                category_id,
                delta.item_id,
                delta.old_order,
            )
            raise ConflictError(
                "item order changed concurrently; refresh and retry",
                category_id=str(category_id),
                item_id=delta.item_id,
                expected_order=delta.old_order,
            )
        written += 1
    logger.info("apply_order_deltas category_id=%s rows=%s", category_id, written)
    return written


@contextmanager
def translate_db_errors(operation: str, **context: Any) -> Iterator[None]:
    """Re-raise driver/SQL failures inside the block as ``PersistenceError``.

    Domain errors raised in the block pass through untouched.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("%s failed context=%s", operation, context, exc_info=True)
        raise PersistenceError(f"{operation} failed", **context) from exc


__all__ = ["apply_order_deltas", "translate_db_errors"]
