"""Create / update / delete flows for dropdown items.

All flows keep the category's sort orders dense: inserts make room with
``plan_insert``, deletes close the gap (when compaction is enabled), and a
changed ``sort_order`` on update goes through the reorder planner instead of
being written directly.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.engine import Connection

from dropdown_service.db.base import get_engine
from dropdown_service.logic.errors import (
    CategoryNotFoundError,
    NotFoundError,
    OrderValidationError,
    PreconditionRequiredError,
)
from dropdown_service.logic.etag import compute_items_etag
from dropdown_service.logic.events import (
    ITEM_UPDATED,
    ITEMS_CREATED,
    ITEMS_DELETED,
    ITEMS_REORDERED,
    publish,
)
from dropdown_service.logic.items_reorder import check_if_match, move_in_transaction
from dropdown_service.logic.order_persistence import apply_order_deltas, translate_db_errors
from dropdown_service.logic.ordering import (
    OrderDelta,
    OrderedCollection,
    next_sort_order,
    plan_compaction,
    plan_insert,
    plan_removal,
    plan_reorder,
)
from dropdown_service.logic.paste_list import parse_pasted_list
from dropdown_service.logic.repository_categories import get_category_by_name, lock_category, require_category
from dropdown_service.logic.repository_items import (
    delete_all_item_rows,
    delete_item_row,
    fetch_items,
    get_item_row,
    insert_item_row,
    load_order_snapshot,
    update_item_row,
)

logger = logging.getLogger(__name__)


def _clean_text(value: Optional[str], field_name: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise OrderValidationError(f"{field_name} must not be blank", field=field_name)
    return text


def _current_etag(conn: Connection, category_id: str) -> str:
    return compute_items_etag(category_id, load_order_snapshot(conn, category_id))


def list_category_items(category_id: str) -> Tuple[List[Dict[str, Any]], str]:
    """Return the category's items in display order plus the list ETag."""
    require_category(category_id)
    eng = get_engine()
    with translate_db_errors("list_items", category_id=str(category_id)):
        with eng.connect() as conn:
            items = fetch_items(conn, category_id)
    return items, compute_items_etag(category_id, OrderedCollection.from_rows(items))


def list_options(category_name: str) -> List[str]:
    """Active items' display text, in order, for a category looked up by name."""
    category = get_category_by_name(category_name)
    if category is None:
        raise CategoryNotFoundError(f"category {category_name} not found", name=str(category_name))
    eng = get_engine()
    with translate_db_errors("list_options", category_id=category["id"]):
        with eng.connect() as conn:
            items = fetch_items(conn, category["id"], active_only=True)
    return [item["display_text"] for item in items]


def create_item(
    category_id: str,
    *,
    display_text: str,
    value: Optional[str] = None,
    sort_order: Optional[int] = None,
    is_active: bool = True,
    base: int = 1,
) -> Tuple[Dict[str, Any], str]:
    """Insert one item at ``sort_order`` (shifting later items) or append it."""
    text = _clean_text(display_text, "display_text")
    stored_value = str(value).strip() if value is not None and str(value).strip() else text
    require_category(category_id)
    eng = get_engine()
    with translate_db_errors("create_item", category_id=str(category_id)):
        with eng.begin() as conn:
            lock_category(conn, category_id)
            snapshot = load_order_snapshot(conn, category_id)
            position, shifts = plan_insert(snapshot, sort_order, base)
            apply_order_deltas(conn, category_id, shifts)
            item_id = insert_item_row(
                conn,
                category_id,
                value=stored_value,
                display_text=text,
                sort_order=position,
                is_active=is_active,
            )
            item = get_item_row(conn, category_id, item_id)
            etag = _current_etag(conn, category_id)
    logger.info(
        "create_item category_id=%s item_id=%s requested=%s position=%s shifted=%s",
        category_id,
        item_id,
        sort_order,
        position,
        len(shifts),
    )
    publish(ITEMS_CREATED, {"category_id": str(category_id), "item_ids": [item_id]})
    return item, etag  # type: ignore[return-value]


def create_items_from_list(category_id: str, text: str, *, base: int = 1) -> Tuple[List[Dict[str, Any]], str]:
    """Append one active item per non-blank pasted line, in input order."""
    entries = parse_pasted_list(text)
    require_category(category_id)
    eng = get_engine()
    created_ids: List[str] = []
    with translate_db_errors("create_items_from_list", category_id=str(category_id)):
        with eng.begin() as conn:
            lock_category(conn, category_id)
            start = next_sort_order(load_order_snapshot(conn, category_id), base)
            for offset, entry in enumerate(entries):
                created_ids.append(
                    insert_item_row(
                        conn,
                        category_id,
                        value=entry,
                        display_text=entry,
                        sort_order=start + offset,
                        is_active=True,
                    )
                )
            wanted = set(created_ids)
            created = [row for row in fetch_items(conn, category_id) if row["id"] in wanted]
            etag = _current_etag(conn, category_id)
    publish(ITEMS_CREATED, {"category_id": str(category_id), "item_ids": created_ids})
    return created, etag


def update_item(
    category_id: str,
    item_id: str,
    *,
    display_text: Optional[str] = None,
    value: Optional[str] = None,
    is_active: Optional[bool] = None,
    sort_order: Optional[int] = None,
    if_match: Optional[str] = None,
    base: int = 1,
    repair: bool = True,
) -> Tuple[Dict[str, Any], str]:
    """Update payload fields; a new ``sort_order`` is applied as a reorder.

    When only ``display_text`` is given, ``value`` follows it so the stored
    value and the label stay identical.
    A reorder through ``sort_order`` needs ``if_match`` like the position route.
    """
    fields: Dict[str, Any] = {}
    if display_text is not None:
        fields["display_text"] = _clean_text(display_text, "display_text")
        if value is None:
            fields["value"] = fields["display_text"]
    if value is not None:
        fields["value"] = _clean_text(value, "value")
    if is_active is not None:
        fields["is_active"] = bool(is_active)

    if sort_order is not None and if_match is None:
        raise PreconditionRequiredError(
            "If-Match is required when changing sort_order",
            category_id=str(category_id),
            item_id=str(item_id),
        )

    require_category(category_id)
    eng = get_engine()
    deltas: List[OrderDelta] = []
    repaired: List[OrderDelta] = []
    with translate_db_errors("update_item", category_id=str(category_id), item_id=str(item_id)):
        with eng.begin() as conn:
            lock_category(conn, category_id)
            if get_item_row(conn, category_id, item_id) is None:
                raise NotFoundError(f"item {item_id} not found", item_id=str(item_id))
            if sort_order is not None:
                deltas, repaired = move_in_transaction(
                    conn,
                    category_id,
                    lambda snapshot: plan_reorder(snapshot, item_id, sort_order),
                    base=base,
                    repair=repair,
                    if_match=if_match,
                )
            elif if_match is not None:
                check_if_match(category_id, load_order_snapshot(conn, category_id), if_match)
            update_item_row(conn, category_id, item_id, fields)
            item = get_item_row(conn, category_id, item_id)
            etag = _current_etag(conn, category_id)
    publish(ITEM_UPDATED, {"category_id": str(category_id), "item_id": str(item_id), "fields": sorted(fields)})
    if deltas or repaired:
        publish(
            ITEMS_REORDERED,
            {
                "category_id": str(category_id),
                "item_id": str(item_id),
                "changes": [{"id": d.item_id, "sort_order": d.new_order} for d in deltas],
                "repaired": len(repaired),
            },
        )
    return item, etag  # type: ignore[return-value]


def delete_item(category_id: str, item_id: str, *, compact: bool = True, base: int = 1) -> str:
    """Delete one item; with ``compact`` the later items close the gap."""
    require_category(category_id)
    eng = get_engine()
    with translate_db_errors("delete_item", category_id=str(category_id), item_id=str(item_id)):
        with eng.begin() as conn:
            lock_category(conn, category_id)
            snapshot = load_order_snapshot(conn, category_id)
            snapshot.get(item_id)
            deltas: List[OrderDelta] = []
            if compact:
                if snapshot.is_dense(base):
                    deltas = plan_removal(snapshot, item_id)
                else:
                    remaining = [it for it in snapshot if it.item_id != str(item_id)]
                    deltas = plan_compaction(remaining, base)
            delete_item_row(conn, category_id, item_id)
            apply_order_deltas(conn, category_id, deltas)
            etag = _current_etag(conn, category_id)
    logger.info("delete_item category_id=%s item_id=%s compacted=%s", category_id, item_id, len(deltas))
    publish(ITEMS_DELETED, {"category_id": str(category_id), "item_ids": [str(item_id)], "compacted": len(deltas)})
    return etag


def delete_all_items(category_id: str) -> int:
    require_category(category_id)
    eng = get_engine()
    with translate_db_errors("delete_all_items", category_id=str(category_id)):
        with eng.begin() as conn:
            lock_category(conn, category_id)
            removed = delete_all_item_rows(conn, category_id)
    publish(ITEMS_DELETED, {"category_id": str(category_id), "item_ids": "*", "count": removed})
    return removed


__all__ = [
    "list_category_items",
    "list_options",
    "create_item",
    "create_items_from_list",
    "update_item",
    "delete_item",
    "delete_all_items",
]
