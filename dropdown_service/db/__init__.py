"""Database bootstrap utilities for the dropdown service.

Exposes engine construction and the migrations runner that applies SQL files
from the bundled migrations/ directory. The DB layer does not leak ORM models
into route handlers.
"""

from dropdown_service.db.base import get_engine, reset_engine
from dropdown_service.db.migrations_runner import apply_migrations, applied_migrations

__all__ = [
    "get_engine",
    "reset_engine",
    "apply_migrations",
    "applied_migrations",
]
