"""Functional test bootstrap for the dropdown service.

Points the app at a file-backed SQLite database before any import of
``dropdown_service``, applies the bundled migrations once per session, and
empties the tables between tests. Scoped under tests/functional/ so the
behave suite and architectural tests are unaffected.
"""

from __future__ import annotations

import os
import pathlib
from typing import Callable, Dict, List

import pytest

_ROOT = pathlib.Path(__file__).resolve().parents[2]
_DB_FILE = _ROOT / "tmp" / "functional_tests.db"
_DB_FILE.parent.mkdir(parents=True, exist_ok=True)
if _DB_FILE.exists():
    _DB_FILE.unlink()

# Use a file-backed SQLite DB to ensure persistence across connections
os.environ["TEST_DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
# Migrations are applied explicitly below, not by the app's startup hook
os.environ["AUTO_APPLY_MIGRATIONS"] = "0"
# The reset and events feeds are mounted only with this flag
os.environ["ENABLE_TEST_SUPPORT"] = "1"


@pytest.fixture(scope="session", autouse=True)
def functional_sqlite_bootstrap():
    """Session-level bootstrap: apply migrations once for the shared DB."""
    from dropdown_service.db.base import get_engine
    from dropdown_service.db.migrations_runner import apply_migrations

    apply_migrations(get_engine(os.environ["TEST_DATABASE_URL"]))
    yield


@pytest.fixture(autouse=True)
def clean_tables():
    """Every test starts with empty tables and an empty event buffer."""
    from dropdown_service.db.base import get_engine
    from dropdown_service.logic.events import clear_buffered_events
    from dropdown_service.logic.repository_categories import purge_all

    get_engine(os.environ["TEST_DATABASE_URL"])
    purge_all()
    clear_buffered_events()
    yield


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from dropdown_service.main import create_app

    with TestClient(create_app()) as c:
        yield c


@pytest.fixture
def make_category(client) -> Callable[..., Dict]:
    def _make(name: str = "Project Status", description: str = "") -> Dict:
        resp = client.post("/api/v1/categories", json={"name": name, "description": description})
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make


@pytest.fixture
def seeded(client, make_category) -> Dict:
    """A category holding items A..E at sort orders 1..5."""
    category = make_category("letters")
    resp = client.post(
        f"/api/v1/categories/{category['id']}/items/paste",
        json={"text": "A\nB\nC\nD\nE"},
    )
    assert resp.status_code == 201, resp.text
    ids: Dict[str, str] = {row["display_text"]: row["id"] for row in resp.json()["created"]}
    return {"category": category, "ids": ids, "etag": resp.json()["etag"]}


@pytest.fixture
def listed(client) -> Callable[[str], List[str]]:
    """Display texts of a category's items in display order."""

    def _listed(category_id: str) -> List[str]:
        resp = client.get(f"/api/v1/categories/{category_id}/items")
        assert resp.status_code == 200, resp.text
        return [row["display_text"] for row in resp.json()["items"]]

    return _listed
