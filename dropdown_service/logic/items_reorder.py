"""Reorder flows for dropdown items.

Each flow runs in a single transaction: read the category's order snapshot,
check the caller's If-Match token against it, repair a non-dense snapshot
when allowed, plan the move with the pure planners in ``ordering``, and apply
the deltas with compare-and-swap writes. Nothing is committed unless every
step succeeds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.engine import Connection

from dropdown_service.db.base import get_engine
from dropdown_service.logic.errors import ConflictError, PreconditionFailedError
from dropdown_service.logic.etag import compare_etag, compute_items_etag
from dropdown_service.logic.events import ITEMS_REORDERED, publish
from dropdown_service.logic.order_persistence import apply_order_deltas, translate_db_errors
from dropdown_service.logic.ordering import (
    OrderDelta,
    OrderedCollection,
    apply_deltas,
    plan_compaction,
    plan_reorder,
    plan_step,
)
from dropdown_service.logic.repository_categories import lock_category, require_category
from dropdown_service.logic.repository_items import fetch_items, load_order_snapshot

logger = logging.getLogger(__name__)

Planner = Callable[[OrderedCollection], List[OrderDelta]]


@dataclass
class ReorderOutcome:
    category_id: str
    item_id: str
    deltas: List[OrderDelta]
    items: List[Dict[str, Any]]
    etag: str
    repaired: List[OrderDelta] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.deltas or self.repaired)


def check_if_match(category_id: str, snapshot: OrderedCollection, if_match: Optional[str]) -> str:
    """Return the snapshot's ETag; raise when a supplied If-Match is stale."""
    current = compute_items_etag(category_id, snapshot)
    if if_match is not None and not compare_etag(current, if_match):
        raise PreconditionFailedError(
            "If-Match does not match the current item order",
            category_id=str(category_id),
            current_etag=current,
        )
    return current


def ensure_dense(
    conn: Connection,
    category_id: str,
    snapshot: OrderedCollection,
    *,
    base: int,
    repair: bool,
) -> Tuple[OrderedCollection, List[OrderDelta]]:
    """Return a dense snapshot, compacting stored orders first when needed."""
    if snapshot.is_dense(base):
        return snapshot, []
    if not repair:
        raise ConflictError(
            "stored sort orders are not a dense sequence",
            category_id=str(category_id),
            base=int(base),
        )
    repaired = plan_compaction(snapshot, base)
    logger.warning(
        "ensure_dense repairing category_id=%s base=%s before=%s rows=%s",
        category_id,
        base,
        [it.sort_order for it in snapshot],
        len(repaired),
    )
    apply_order_deltas(conn, category_id, repaired)
    return OrderedCollection(apply_deltas(snapshot, repaired)), repaired


def move_in_transaction(
    conn: Connection,
    category_id: str,
    planner: Planner,
    *,
    base: int,
    repair: bool,
    if_match: Optional[str] = None,
) -> Tuple[List[OrderDelta], List[OrderDelta]]:
    """Plan and persist a move on an open transaction; return (deltas, repaired).

    Callers take ``lock_category`` first so the snapshot read here is current.
    """
    snapshot = load_order_snapshot(conn, category_id)
    check_if_match(category_id, snapshot, if_match)
    snapshot, repaired = ensure_dense(conn, category_id, snapshot, base=base, repair=repair)
    deltas = planner(snapshot)
    logger.info(
        "reorder.plan category_id=%s before=%s deltas=%s",
        category_id,
        [(it.item_id, it.sort_order) for it in snapshot],
        [d.as_pair() for d in deltas],
    )
    apply_order_deltas(conn, category_id, deltas)
    return deltas, repaired


def _run_move(
    category_id: str,
    item_id: str,
    planner: Planner,
    *,
    base: int,
    repair: bool,
    if_match: Optional[str],
) -> ReorderOutcome:
    require_category(category_id)
    eng = get_engine()
    with translate_db_errors("reorder_item", category_id=str(category_id), item_id=str(item_id)):
        with eng.begin() as conn:
            lock_category(conn, category_id)
            deltas, repaired = move_in_transaction(
                conn, category_id, planner, base=base, repair=repair, if_match=if_match
            )
            items = fetch_items(conn, category_id)
    etag = compute_items_etag(category_id, OrderedCollection.from_rows(items))
    outcome = ReorderOutcome(
        category_id=str(category_id),
        item_id=str(item_id),
        deltas=deltas,
        items=items,
        etag=etag,
        repaired=repaired,
    )
    if outcome.changed:
        publish(
            ITEMS_REORDERED,
            {
                "category_id": str(category_id),
                "item_id": str(item_id),
                "changes": [{"id": d.item_id, "sort_order": d.new_order} for d in deltas],
                "repaired": len(repaired),
            },
        )
    return outcome


def reorder_item(
    category_id: str,
    item_id: str,
    target_order: int,
    *,
    base: int = 1,
    repair: bool = True,
    if_match: Optional[str] = None,
) -> ReorderOutcome:
    """Move an item to ``target_order`` and persist only the changed rows."""
    return _run_move(
        category_id,
        item_id,
        lambda snapshot: plan_reorder(snapshot, item_id, target_order),
        base=base,
        repair=repair,
        if_match=if_match,
    )


def step_item(
    category_id: str,
    item_id: str,
    direction: str,
    *,
    base: int = 1,
    repair: bool = True,
    if_match: Optional[str] = None,
) -> ReorderOutcome:
    """Move an item one slot up or down (the list's arrow buttons)."""
    return _run_move(
        category_id,
        item_id,
        lambda snapshot: plan_step(snapshot, item_id, direction),
        base=base,
        repair=repair,
        if_match=if_match,
    )


__all__ = [
    "ReorderOutcome",
    "check_if_match",
    "ensure_dense",
    "move_in_transaction",
    "reorder_item",
    "step_item",
]
