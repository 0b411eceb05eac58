"""Dropdown item data access helpers.

Row-level helpers take an open SQLAlchemy ``Connection`` so the write flows in
``items_write`` and ``items_reorder`` can compose several of them inside one
transaction. Read helpers without a connection open their own.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from dropdown_service.db.base import get_engine
from dropdown_service.logic.ordering import OrderedCollection

logger = logging.getLogger(__name__)

_COLUMNS = "id, category_id, value, display_text, sort_order, is_active, created_at, updated_at"
_ORDER_BY = "ORDER BY sort_order ASC, id ASC"

# Columns a caller may change through update_item_row
UPDATABLE_FIELDS = ("value", "display_text", "is_active")


def _ts(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat() if isinstance(value, datetime) else str(value)


def _to_dict(row: Any) -> Dict[str, Any]:
    m = row._mapping
    return {
        "id": str(m["id"]),
        "category_id": str(m["category_id"]),
        "value": str(m["value"]),
        "display_text": str(m["display_text"]),
        "sort_order": int(m["sort_order"]),
        "is_active": bool(m["is_active"]),
        "created_at": _ts(m["created_at"]),
        "updated_at": _ts(m["updated_at"]),
    }


def fetch_items(conn: Connection, category_id: str, active_only: bool = False) -> List[Dict[str, Any]]:
    where = "WHERE category_id = :cid"
    if active_only:
        where += " AND is_active = :active"
    params: Dict[str, Any] = {"cid": str(category_id)}
    if active_only:
        params["active"] = True
    rows = conn.execute(sql_text(f"SELECT {_COLUMNS} FROM dropdown_items {where} {_ORDER_BY}"), params).fetchall()
    return [_to_dict(r) for r in rows]


def load_order_snapshot(conn: Connection, category_id: str) -> OrderedCollection:
    """Read the category's ``(id, sort_order)`` pairs as an OrderedCollection."""
    rows = conn.execute(
        sql_text(f"SELECT id, sort_order FROM dropdown_items WHERE category_id = :cid {_ORDER_BY}"),
        {"cid": str(category_id)},
    ).fetchall()
    return OrderedCollection.from_rows({"id": r[0], "sort_order": r[1]} for r in rows)


def list_items(category_id: str, active_only: bool = False) -> List[Dict[str, Any]]:
    eng = get_engine()
    with eng.connect() as conn:
        return fetch_items(conn, category_id, active_only=active_only)


def get_item_row(conn: Connection, category_id: str, item_id: str) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        sql_text(f"SELECT {_COLUMNS} FROM dropdown_items WHERE id = :iid AND category_id = :cid"),
        {"iid": str(item_id), "cid": str(category_id)},
    ).fetchone()
    return _to_dict(row) if row else None


def insert_item_row(
    conn: Connection,
    category_id: str,
    *,
    value: str,
    display_text: str,
    sort_order: int,
    is_active: bool = True,
) -> str:
    item_id = str(uuid.uuid4())
    conn.execute(
        sql_text(
            "INSERT INTO dropdown_items (id, category_id, value, display_text, sort_order, is_active) "
            "VALUES (:iid, :cid, :value, :text, :ord, :active)"
        ),
        {
            "iid": item_id,
            "cid": str(category_id),
            "value": value,
            "text": display_text,
            "ord": int(sort_order),
            "active": bool(is_active),
        },
    )
    return item_id


def update_item_row(conn: Connection, category_id: str, item_id: str, fields: Mapping[str, Any]) -> int:
    """Update payload columns (never ``sort_order``); return the affected row count."""
    changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
    if not changes:
        return 0
    assignments = ", ".join(f"{name} = :{name}" for name in changes)
    params = dict(changes)
    params.update({"iid": str(item_id), "cid": str(category_id)})
    result = conn.execute(
        sql_text(
            f"UPDATE dropdown_items SET {assignments}, updated_at = CURRENT_TIMESTAMP "
            "WHERE id = :iid AND category_id = :cid"
        ),
        params,
    )
    return int(result.rowcount or 0)


def delete_item_row(conn: Connection, category_id: str, item_id: str) -> int:
    result = conn.execute(
        sql_text("DELETE FROM dropdown_items WHERE id = :iid AND category_id = :cid"),
        {"iid": str(item_id), "cid": str(category_id)},
    )
    return int(result.rowcount or 0)


def delete_all_item_rows(conn: Connection, category_id: str) -> int:
    result = conn.execute(
        sql_text("DELETE FROM dropdown_items WHERE category_id = :cid"),
        {"cid": str(category_id)},
    )
    return int(result.rowcount or 0)


__all__ = [
    "UPDATABLE_FIELDS",
    "fetch_items",
    "load_order_snapshot",
    "list_items",
    "get_item_row",
    "insert_item_row",
    "update_item_row",
    "delete_item_row",
    "delete_all_item_rows",
]
