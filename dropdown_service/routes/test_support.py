"""Test support routes.

Test-only endpoints used by the integration suite to reset state and to
observe buffered domain events.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response

from dropdown_service.logic import events as _events
from dropdown_service.logic.repository_categories import purge_all

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/__test__/reset-state", summary="Test-only reset state")
def reset_state() -> Response:
    """Empty the dropdown tables and the event buffer; returns 204."""
    _events.clear_buffered_events()
    purge_all()
    logger.info("test_state_reset")
    return Response(status_code=204)


@router.get("/__test__/events", summary="Test-only events feed")
def get_test_events() -> JSONResponse:
    """Expose buffered domain events without clearing the buffer."""
    return JSONResponse({"events": _events.get_buffered_events(clear=False)})


__all__ = ["router"]
