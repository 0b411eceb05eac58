"""Dense sort-order planning for dropdown items.

Pure, in-memory helpers that keep a category's ``sort_order`` values a dense,
gap-free run of integers. Every planner takes an immutable snapshot and
returns only the rows whose order changes (``OrderDelta``); nothing here
touches the database. Callers persist the deltas through
``dropdown_service.logic.order_persistence`` and re-read afterwards.
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from dropdown_service.logic.errors import (
    ConflictError,
    NotFoundError,
    OrderValidationError,
    OutOfRangeError,
)

STEP_UP = "up"
STEP_DOWN = "down"
_STEPS = {STEP_UP: -1, STEP_DOWN: 1}


@dataclass(frozen=True)
class OrderedItem:
    item_id: str
    sort_order: int


@dataclass(frozen=True)
class OrderDelta:
    """One item's order change; ``old_order`` backs compare-and-swap writes."""

    item_id: str
    old_order: int
    new_order: int

    def as_pair(self) -> Tuple[str, int]:
        return self.item_id, self.new_order


class OrderedCollection:
    """Read-only view of items sorted by ``(sort_order, item_id)``.

    The input sequence is copied, never mutated. Item ids must be unique;
    duplicate sort orders are tolerated here and reported by ``is_dense``.
    """

    def __init__(self, items: Iterable[OrderedItem]) -> None:
        self._items: Tuple[OrderedItem, ...] = tuple(
            sorted(items, key=lambda it: (it.sort_order, it.item_id))
        )
        self._orders: Tuple[int, ...] = tuple(it.sort_order for it in self._items)
        self._by_id = {it.item_id: it for it in self._items}
        if len(self._by_id) != len(self._items):
            raise OrderValidationError("duplicate item ids in ordered collection")

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[Mapping[str, Any]],
        id_key: str = "id",
        order_key: str = "sort_order",
    ) -> "OrderedCollection":
        return cls(OrderedItem(str(row[id_key]), int(row[order_key])) for row in rows)

    def __iter__(self) -> Iterator[OrderedItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> Tuple[OrderedItem, ...]:
        return self._items

    @property
    def item_count(self) -> int:
        return len(self._items)

    @property
    def min_sort_order(self) -> Optional[int]:
        return self._orders[0] if self._orders else None

    @property
    def max_sort_order(self) -> Optional[int]:
        return self._orders[-1] if self._orders else None

    def find(self, item_id: str) -> Optional[OrderedItem]:
        return self._by_id.get(str(item_id))

    def get(self, item_id: str) -> OrderedItem:
        found = self.find(item_id)
        if found is None:
            raise NotFoundError(f"item {item_id} is not in the collection", item_id=str(item_id))
        return found

    def window(self, low: int, high: int) -> Tuple[OrderedItem, ...]:
        """Return the items whose sort order lies in ``[low, high]``."""
        if low > high:
            return ()
        start = bisect_left(self._orders, low)
        stop = bisect_right(self._orders, high)
        return self._items[start:stop]

    def is_dense(self, base: Optional[int] = None) -> bool:
        """True when orders are exactly ``start..start+N-1`` with no repeats.

        ``start`` is ``base`` when given, otherwise the current minimum.
        """
        if not self._orders:
            return True
        start = self._orders[0] if base is None else int(base)
        return list(self._orders) == list(range(start, start + len(self._orders)))


def plan_reorder(collection: OrderedCollection, item_id: str, target_order: int) -> List[OrderDelta]:
    """Move ``item_id`` to ``target_order``; return only the changed rows.

    Items between the old and new position shift by one slot towards the
    vacated position. The result has ``abs(target - old) + 1`` entries, or
    none when the item already sits at ``target_order``. Raises
    ``NotFoundError`` or ``OutOfRangeError`` before any delta is built.
    """
    moved = collection.get(item_id)
    target = int(target_order)
    low, high = collection.min_sort_order, collection.max_sort_order
    if low is None or high is None or not low <= target <= high:
        raise OutOfRangeError(
            f"target order {target} outside [{low}, {high}]",
            target_order=target,
            min_order=low,
            max_order=high,
            item_id=moved.item_id,
        )
    old = moved.sort_order
    if target == old:
        return []

    if target > old:
        shift, affected = -1, collection.window(old + 1, target)
    else:
        shift, affected = 1, collection.window(target, old - 1)

    deltas = [OrderDelta(moved.item_id, old, target)]
    for item in affected:
        if item.item_id == moved.item_id:
            continue
        deltas.append(OrderDelta(item.item_id, item.sort_order, item.sort_order + shift))
    deltas.sort(key=lambda d: d.new_order)
    return deltas


def plan_step(collection: OrderedCollection, item_id: str, direction: str) -> List[OrderDelta]:
    """Move an item one slot ``up`` (earlier) or ``down`` (later)."""
    try:
        step = _STEPS[str(direction).strip().lower()]
    except KeyError:
        raise OrderValidationError(
            f"direction must be one of {sorted(_STEPS)}", direction=direction
        ) from None
    current = collection.get(item_id)
    return plan_reorder(collection, item_id, current.sort_order + step)


def next_sort_order(collection: OrderedCollection, base: int) -> int:
    high = collection.max_sort_order
    return int(base) if high is None else high + 1


def plan_insert(
    collection: OrderedCollection, position: Optional[int], base: int
) -> Tuple[int, List[OrderDelta]]:
    """Make room for a new item at ``position``.

    ``None`` or any position past the end appends. Positions before the
    first slot are clamped to it. Returns the final position for the new
    item and the +1 shifts for every item at or after it.
    """
    append_at = next_sort_order(collection, base)
    if position is None or int(position) >= append_at:
        return append_at, []
    first = collection.min_sort_order if collection.min_sort_order is not None else int(base)
    pos = max(int(position), first)
    shifted = collection.window(pos, append_at - 1)
    return pos, [OrderDelta(it.item_id, it.sort_order, it.sort_order + 1) for it in reversed(shifted)]


def plan_removal(collection: OrderedCollection, item_id: str) -> List[OrderDelta]:
    """Close the gap a removed item leaves: every later item moves up one."""
    removed = collection.get(item_id)
    high = collection.max_sort_order
    later = collection.window(removed.sort_order + 1, high if high is not None else removed.sort_order)
    return [
        OrderDelta(it.item_id, it.sort_order, it.sort_order - 1)
        for it in later
        if it.item_id != removed.item_id
    ]


def plan_compaction(items: Iterable[OrderedItem], base: int) -> List[OrderDelta]:
    """Renumber a gapped or duplicated sequence densely from ``base``.

    Relative order is kept, ties broken by item id. Only changed rows are
    returned.
    """
    ordered = OrderedCollection(items)
    return [
        OrderDelta(it.item_id, it.sort_order, int(base) + idx)
        for idx, it in enumerate(ordered)
        if it.sort_order != int(base) + idx
    ]


def apply_deltas(items: Iterable[OrderedItem], deltas: Sequence[OrderDelta]) -> Tuple[OrderedItem, ...]:
    """Return a new sorted snapshot with ``deltas`` applied.

    A delta naming an unknown item raises ``NotFoundError``; one whose
    ``old_order`` disagrees with the snapshot raises ``ConflictError``.
    """
    current = {it.item_id: it for it in items}
    updated = dict(current)
    for delta in deltas:
        existing = current.get(delta.item_id)
        if existing is None:
            raise NotFoundError(f"delta for unknown item {delta.item_id}", item_id=delta.item_id)
        if existing.sort_order != delta.old_order:
            raise ConflictError(
                f"stale delta for item {delta.item_id}",
                item_id=delta.item_id,
                expected_order=delta.old_order,
                actual_order=existing.sort_order,
            )
        updated[delta.item_id] = OrderedItem(delta.item_id, delta.new_order)
    return OrderedCollection(updated.values()).items


__all__ = [
    "STEP_UP",
    "STEP_DOWN",
    "OrderedItem",
    "OrderDelta",
    "OrderedCollection",
    "plan_reorder",
    "plan_step",
    "next_sort_order",
    "plan_insert",
    "plan_removal",
    "plan_compaction",
    "apply_deltas",
]
