"""Dropdown item endpoints.

Implements:
- GET /categories/{category_id}/items
  - Returns the items in display order and emits ETag / Items-ETag
- POST /categories/{category_id}/items, POST .../items/paste
  - Create one item (insert or append) or append a pasted list
- PATCH /categories/{category_id}/items/{item_id}
  - Update payload fields; a new sort_order is applied as a reorder
- PATCH .../items/{item_id}/position, POST .../items/{item_id}/move
  - Reorder with If-Match; the response lists only the rows that moved
- DELETE /categories/{category_id}/items[/{item_id}]
  - Delete everything, or one item (later items close the gap)

Ordering behaviour (base, compaction, repair) comes from the application's
``OrderingConfig`` stored on ``app.state.config``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Header, Request, Response

from dropdown_service.config import OrderingConfig
from dropdown_service.logic.header_emitter import emit_etag_headers
from dropdown_service.logic.items_reorder import ReorderOutcome, reorder_item, step_item
from dropdown_service.logic.items_write import (
    create_item,
    create_items_from_list,
    delete_all_items,
    delete_item,
    list_category_items,
    update_item,
)
from dropdown_service.logic.ordering import OrderDelta
from dropdown_service.models.dropdowns import (
    Item,
    ItemCreate,
    ItemList,
    ItemUpdate,
    MoveRequest,
    PasteListRequest,
    PasteListResult,
    ReorderRequest,
    ReorderResult,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _ordering(request: Request) -> OrderingConfig:
    return request.app.state.config.ordering


def _delta_bodies(deltas: List[OrderDelta]) -> List[Dict[str, Any]]:
    return [{"id": d.item_id, "old_order": d.old_order, "new_order": d.new_order} for d in deltas]


def _reorder_body(outcome: ReorderOutcome) -> Dict[str, Any]:
    return {
        "category_id": outcome.category_id,
        "item_id": outcome.item_id,
        "changed": outcome.changed,
        "deltas": _delta_bodies(outcome.deltas),
        "repaired": _delta_bodies(outcome.repaired),
        "items": outcome.items,
        "etag": outcome.etag,
    }


@router.get(
    "/categories/{category_id}/items",
    summary="List a category's items in display order",
    operation_id="listItems",
    response_model=ItemList,
)
def get_items(category_id: str, response: Response) -> dict:
    items, etag = list_category_items(category_id)
    emit_etag_headers(response, scope="items", token=etag)
    return {"category_id": str(category_id), "items": items, "etag": etag}


@router.post(
    "/categories/{category_id}/items",
    summary="Create an item, inserted at sort_order or appended",
    operation_id="createItem",
    status_code=201,
    response_model=Item,
)
def post_item(category_id: str, body: ItemCreate, request: Request, response: Response) -> dict:
    item, etag = create_item(
        category_id,
        display_text=body.display_text,
        value=body.value,
        sort_order=body.sort_order,
        is_active=body.is_active,
        base=_ordering(request).base,
    )
    emit_etag_headers(response, scope="items", token=etag)
    return item


@router.post(
    "/categories/{category_id}/items/paste",
    summary="Append one item per non-blank line of pasted text",
    operation_id="pasteItems",
    status_code=201,
    response_model=PasteListResult,
)
def post_pasted_items(category_id: str, body: PasteListRequest, request: Request, response: Response) -> dict:
    created, etag = create_items_from_list(category_id, body.text, base=_ordering(request).base)
    logger.info("items_pasted category_id=%s count=%s", category_id, len(created))
    emit_etag_headers(response, scope="items", token=etag)
    return {"created": created, "etag": etag}


@router.delete(
    "/categories/{category_id}/items",
    summary="Delete every item in a category",
    operation_id="deleteAllItems",
    status_code=204,
)
def remove_all_items(category_id: str) -> Response:
    removed = delete_all_items(category_id)
    logger.info("items_deleted_all category_id=%s count=%s", category_id, removed)
    return Response(status_code=204)


@router.patch(
    "/categories/{category_id}/items/{item_id}",
    summary="Update an item's text, value, active flag or position",
    operation_id="updateItem",
    response_model=Item,
)
def patch_item(
    category_id: str,
    item_id: str,
    body: ItemUpdate,
    request: Request,
    response: Response,
    if_match: str | None = Header(default=None, alias="If-Match"),
) -> dict:
    ordering = _ordering(request)
    item, etag = update_item(
        category_id,
        item_id,
        display_text=body.display_text,
        value=body.value,
        is_active=body.is_active,
        sort_order=body.sort_order,
        if_match=if_match,
        base=ordering.base,
        repair=ordering.repair_on_reorder,
    )
    emit_etag_headers(response, scope="items", token=etag)
    return item


@router.delete(
    "/categories/{category_id}/items/{item_id}",
    summary="Delete an item",
    operation_id="deleteItem",
    status_code=204,
)
def remove_item(category_id: str, item_id: str, request: Request) -> Response:
    ordering = _ordering(request)
    etag = delete_item(category_id, item_id, compact=ordering.compact_on_delete, base=ordering.base)
    response = Response(status_code=204)
    emit_etag_headers(response, scope="items", token=etag)
    return response


@router.patch(
    "/categories/{category_id}/items/{item_id}/position",
    summary="Move an item to a target sort order",
    operation_id="reorderItem",
    response_model=ReorderResult,
)
def patch_item_position(
    category_id: str,
    item_id: str,
    body: ReorderRequest,
    request: Request,
    response: Response,
    if_match: str = Header(alias="If-Match"),
) -> dict:
    ordering = _ordering(request)
    outcome = reorder_item(
        category_id,
        item_id,
        body.target_order,
        base=ordering.base,
        repair=ordering.repair_on_reorder,
        if_match=if_match,
    )
    emit_etag_headers(response, scope="items", token=outcome.etag)
    return _reorder_body(outcome)


@router.post(
    "/categories/{category_id}/items/{item_id}/move",
    summary="Move an item one slot up or down",
    operation_id="moveItem",
    response_model=ReorderResult,
)
def post_item_move(
    category_id: str,
    item_id: str,
    body: MoveRequest,
    request: Request,
    response: Response,
    if_match: str = Header(alias="If-Match"),
) -> dict:
    ordering = _ordering(request)
    outcome = step_item(
        category_id,
        item_id,
        body.direction,
        base=ordering.base,
        repair=ordering.repair_on_reorder,
        if_match=if_match,
    )
    emit_etag_headers(response, scope="items", token=outcome.etag)
    return _reorder_body(outcome)


__all__ = ["router"]
