"""APIRouter registration for the dropdown service."""

from __future__ import annotations

from fastapi import APIRouter

from dropdown_service.routes.categories import router as categories_router
from dropdown_service.routes.items import router as items_router
from dropdown_service.routes.options import router as options_router

api_router = APIRouter()
api_router.include_router(categories_router, tags=["Categories"])
api_router.include_router(items_router, tags=["Items", "Ordering"])
api_router.include_router(options_router, tags=["Options"])

__all__ = ["api_router"]
