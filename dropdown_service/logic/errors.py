"""Domain error taxonomy for dropdown ordering and persistence.

Logic modules raise these; `dropdown_service.http.problem` maps each class to
a problem+json response via the table in `dropdown_service.http.error_mapping`.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class OrderingError(Exception):
    """Base class for every error surfaced by the dropdown logic layer."""

    code = "ORDERING_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context)


class NotFoundError(OrderingError):
    code = "ORDER_ITEM_NOT_FOUND"


class CategoryNotFoundError(NotFoundError):
    code = "CATEGORY_NOT_FOUND"


class OutOfRangeError(OrderingError):
    code = "ORDER_TARGET_OUT_OF_RANGE"

    def __init__(
        self,
        message: str,
        *,
        target_order: int,
        min_order: Optional[int],
        max_order: Optional[int],
        **context: Any,
    ) -> None:
        super().__init__(
            message,
            target_order=target_order,
            min_order=min_order,
            max_order=max_order,
            **context,
        )
        self.target_order = target_order
        self.min_order = min_order
        self.max_order = max_order


class OrderValidationError(OrderingError, ValueError):
    code = "ORDER_VALIDATION_FAILED"


class ConflictError(OrderingError):
    """Durable state no longer matches the snapshot a write was planned from."""

    code = "ORDER_CONFLICT"


class PreconditionFailedError(ConflictError):
    """If-Match token does not match the current list state."""

    code = "PRE_IF_MATCH_ETAG_MISMATCH"


class PreconditionRequiredError(OrderingError):
    """A reorder write arrived without an If-Match token."""

    code = "PRE_IF_MATCH_MISSING"


class PersistenceError(OrderingError):
    code = "PERSISTENCE_FAILED"


class CategoryNotEmptyError(OrderingError):
    code = "CATEGORY_NOT_EMPTY"


class DuplicateCategoryError(OrderingError):
    code = "CATEGORY_NAME_TAKEN"


__all__ = [
    "OrderingError",
    "NotFoundError",
    "CategoryNotFoundError",
    "OutOfRangeError",
    "OrderValidationError",
    "ConflictError",
    "PreconditionFailedError",
    "PreconditionRequiredError",
    "PersistenceError",
    "CategoryNotEmptyError",
    "DuplicateCategoryError",
]
