"""Dropdown category endpoints.

Implements:
- GET /categories: all categories ordered by name
- POST /categories: create (name normalised to lowercase_with_underscores)
- PATCH /categories/{category_id}: update the description
- DELETE /categories/{category_id}: delete a category that owns no items
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response

from dropdown_service.logic.events import (
    CATEGORY_CREATED,
    CATEGORY_DELETED,
    CATEGORY_UPDATED,
    publish,
)
from dropdown_service.logic.repository_categories import (
    create_category,
    delete_category,
    list_categories,
    update_category_description,
)
from dropdown_service.models.dropdowns import Category, CategoryCreate, CategoryList, CategoryUpdate

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get(
    "/categories",
    summary="List dropdown categories",
    operation_id="listCategories",
    response_model=CategoryList,
)
def get_categories() -> dict:
    return {"categories": list_categories()}


@router.post(
    "/categories",
    summary="Create a dropdown category",
    operation_id="createCategory",
    status_code=201,
    response_model=Category,
)
def post_category(body: CategoryCreate) -> dict:
    category = create_category(body.name, body.description)
    logger.info("category_created id=%s name=%s", category["id"], category["name"])
    publish(CATEGORY_CREATED, {"category_id": category["id"], "name": category["name"]})
    return category


@router.patch(
    "/categories/{category_id}",
    summary="Update a category's description",
    operation_id="updateCategory",
    response_model=Category,
)
def patch_category(category_id: str, body: CategoryUpdate) -> dict:
    category = update_category_description(category_id, body.description)
    publish(CATEGORY_UPDATED, {"category_id": category["id"]})
    return category


@router.delete(
    "/categories/{category_id}",
    summary="Delete an empty category",
    operation_id="deleteCategory",
    status_code=204,
)
def remove_category(category_id: str) -> Response:
    delete_category(category_id)
    logger.info("category_deleted id=%s", category_id)
    publish(CATEGORY_DELETED, {"category_id": str(category_id)})
    return Response(status_code=204)


__all__ = ["router"]
