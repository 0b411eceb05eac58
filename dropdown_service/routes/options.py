"""Option lookup for forms that render a dropdown by category name."""

from __future__ import annotations

from fastapi import APIRouter

from dropdown_service.logic.items_write import list_options
from dropdown_service.models.dropdowns import OptionList

router = APIRouter()


@router.get(
    "/dropdowns/{category_name}/options",
    summary="Active option labels for a category, in display order",
    operation_id="listOptions",
    response_model=OptionList,
)
def get_options(category_name: str) -> dict:
    """Resolve the category case-insensitively and return its active labels."""
    return {"category": str(category_name), "options": list_options(category_name)}


__all__ = ["router"]
