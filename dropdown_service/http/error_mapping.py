"""Central error mapping for the dropdown API.

Single source of truth for turning domain errors and precondition outcomes
into problem+json codes and HTTP statuses. Handlers and middleware import
from here instead of hardcoding strings or numbers.
"""

from __future__ import annotations

from typing import Dict, Tuple, Type

from dropdown_service.logic.errors import (
    CategoryNotEmptyError,
    CategoryNotFoundError,
    ConflictError,
    DuplicateCategoryError,
    NotFoundError,
    OrderingError,
    OrderValidationError,
    OutOfRangeError,
    PersistenceError,
    PreconditionFailedError,
    PreconditionRequiredError,
)

# Missing If-Match on reorder routes
MISSING = {
    "code": "PRE_IF_MATCH_MISSING",
    "status": 428,
    "title": "Precondition Required",
}

# (status, title) per error class; lookup walks the MRO so subclasses win
ERROR_STATUS: Dict[Type[OrderingError], Tuple[int, str]] = {
    CategoryNotFoundError: (404, "Category Not Found"),
    NotFoundError: (404, "Not Found"),
    OutOfRangeError: (422, "Target Order Out Of Range"),
    OrderValidationError: (422, "Invalid Request"),
    PreconditionFailedError: (412, "Precondition Failed"),
    PreconditionRequiredError: (MISSING["status"], MISSING["title"]),
    ConflictError: (409, "Conflict"),
    CategoryNotEmptyError: (409, "Category Not Empty"),
    DuplicateCategoryError: (409, "Category Already Exists"),
    PersistenceError: (503, "Service Unavailable"),
}


def status_for(exc: OrderingError) -> Tuple[int, str]:
    for klass in type(exc).__mro__:
        if klass in ERROR_STATUS:
            return ERROR_STATUS[klass]
    return 500, "Internal Server Error"


__all__ = ["MISSING", "ERROR_STATUS", "status_for"]
