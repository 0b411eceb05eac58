"""FastAPI application package for the Survey Hub dropdown service.

Exposes the application factory. The service manages dropdown categories and
their items and keeps each category's ``sort_order`` values a dense
sequence. Business logic lives in `dropdown_service/logic/` and route
handlers in `dropdown_service/routes/`.
"""

from __future__ import annotations

from dropdown_service.main import create_app

__all__ = ["create_app"]
