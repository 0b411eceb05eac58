"""Dropdown category data access helpers.

Encapsulates DB reads/writes for categories so the HTTP layer stays free of
SQL. Write failures are logged with exc_info and re-raised as domain errors.
"""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from dropdown_service.db.base import get_engine
from dropdown_service.logic.errors import (
    CategoryNotEmptyError,
    CategoryNotFoundError,
    DuplicateCategoryError,
    OrderValidationError,
    PersistenceError,
)

logger = logging.getLogger(__name__)

_WS = re.compile(r"\s+")
_COLUMNS = "id, name, description, created_at"


def normalize_category_name(name: str) -> str:
    """Lowercase the name and join whitespace runs with underscores."""
    normalized = _WS.sub("_", str(name or "").strip()).lower()
    if not normalized:
        raise OrderValidationError("category name must not be blank", field="name")
    return normalized


def _ts(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _to_dict(row: Any) -> Dict[str, Any]:
    m = row._mapping
    return {
        "id": str(m["id"]),
        "name": str(m["name"]),
        "description": str(m["description"] or ""),
        "created_at": _ts(m["created_at"]),
    }


def list_categories() -> List[Dict[str, Any]]:
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(sql_text(f"SELECT {_COLUMNS} FROM dropdown_categories ORDER BY name ASC")).fetchall()
    return [_to_dict(r) for r in rows]


def get_category(category_id: str) -> Optional[Dict[str, Any]]:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM dropdown_categories WHERE id = :cid"),
            {"cid": str(category_id)},
        ).fetchone()
    return _to_dict(row) if row else None


def require_category(category_id: str) -> Dict[str, Any]:
    category = get_category(category_id)
    if category is None:
        raise CategoryNotFoundError(f"category {category_id} not found", category_id=str(category_id))
    return category


def lock_category(conn: Connection, category_id: str) -> None:
    """Serialise item writes for one category on the caller's transaction.

    A no-op write to the category row takes a row lock on PostgreSQL and the
    database write lock on SQLite, so a second writer reads its snapshot only
    after the first commits. Must be the first statement of the transaction.
    """
    result = conn.execute(
        sql_text("UPDATE dropdown_categories SET description = description WHERE id = :cid"),
        {"cid": str(category_id)},
    )
    if result.rowcount == 0:
        raise CategoryNotFoundError(f"category {category_id} not found", category_id=str(category_id))


def get_category_by_name(name: str) -> Optional[Dict[str, Any]]:
    """Resolve a category by name, case-insensitively.

    Accepts either the stored form (``project_status``) or a display form
    (``Project Status``).
    """
    raw = str(name or "").strip().lower()
    if not raw:
        return None
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text(
                f"SELECT {_COLUMNS} FROM dropdown_categories "
                "WHERE LOWER(name) = :raw OR LOWER(name) = :norm ORDER BY name ASC"
            ),
            {"raw": raw, "norm": _WS.sub("_", raw)},
        ).fetchone()
    return _to_dict(row) if row else None


def create_category(name: str, description: str = "") -> Dict[str, Any]:
    normalized = normalize_category_name(name)
    category_id = str(uuid.uuid4())
    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(
                sql_text(
                    "INSERT INTO dropdown_categories (id, name, description) VALUES (:cid, :name, :desc)"
                ),
                {"cid": category_id, "name": normalized, "desc": str(description or "").strip()},
            )
    except IntegrityError as exc:
        logger.info("create_category duplicate name=%s", normalized)
        raise DuplicateCategoryError(f"category {normalized} already exists", name=normalized) from exc
    except SQLAlchemyError as exc:
        logger.error("create_category insert failed name=%s", normalized, exc_info=True)
        raise PersistenceError("failed to create category", name=normalized) from exc
    return require_category(category_id)


def update_category_description(category_id: str, description: str) -> Dict[str, Any]:
    """Update a category's description; its name is immutable once created."""
    eng = get_engine()
    try:
        with eng.begin() as conn:
            result = conn.execute(
                sql_text("UPDATE dropdown_categories SET description = :desc WHERE id = :cid"),
                {"desc": str(description or "").strip(), "cid": str(category_id)},
            )
    except SQLAlchemyError as exc:
        logger.error("update_category_description failed category_id=%s", category_id, exc_info=True)
        raise PersistenceError("failed to update category", category_id=str(category_id)) from exc
    if result.rowcount == 0:
        raise CategoryNotFoundError(f"category {category_id} not found", category_id=str(category_id))
    return require_category(category_id)


def delete_category(category_id: str) -> None:
    """Delete an empty category; refuse while it still owns items."""
    eng = get_engine()
    try:
        with eng.begin() as conn:
            remaining = conn.execute(
                sql_text("SELECT COUNT(*) FROM dropdown_items WHERE category_id = :cid"),
                {"cid": str(category_id)},
            ).scalar()
            if int(remaining or 0) > 0:
                raise CategoryNotEmptyError(
                    "cannot delete a category with existing items; delete all items first",
                    category_id=str(category_id),
                    item_count=int(remaining),
                )
            result = conn.execute(
                sql_text("DELETE FROM dropdown_categories WHERE id = :cid"),
                {"cid": str(category_id)},
            )
    except SQLAlchemyError as exc:
        logger.error("delete_category failed category_id=%s", category_id, exc_info=True)
        raise PersistenceError("failed to delete category", category_id=str(category_id)) from exc
    if result.rowcount == 0:
        raise CategoryNotFoundError(f"category {category_id} not found", category_id=str(category_id))


def purge_all() -> None:
    """Remove every item and category (test-support reset)."""
    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(sql_text("DELETE FROM dropdown_items"))
            conn.execute(sql_text("DELETE FROM dropdown_categories"))
    except SQLAlchemyError as exc:
        logger.error("purge_all failed", exc_info=True)
        raise PersistenceError("failed to purge dropdown tables") from exc


__all__ = [
    "normalize_category_name",
    "list_categories",
    "get_category",
    "require_category",
    "lock_category",
    "get_category_by_name",
    "create_category",
    "update_category_description",
    "delete_category",
    "purge_all",
]
