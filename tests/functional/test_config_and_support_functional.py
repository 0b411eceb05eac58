"""Functional tests for configuration, ETag helpers, logging and migrations."""

from __future__ import annotations

import json

import pytest
from fastapi import Response
from pydantic import ValidationError
from sqlalchemy import create_engine, inspect

from dropdown_service import config as config_module
from dropdown_service.config import load_config
from dropdown_service.db.migrations_runner import MIGRATIONS_DIR, applied_migrations, apply_migrations
from dropdown_service.logging_setup import build_logging_config
from dropdown_service.logic import events as events_module
from dropdown_service.logic.etag import compare_etag, compute_items_etag, normalize_etag_token
from dropdown_service.logic.header_emitter import emit_etag_headers
from dropdown_service.logic.ordering import OrderedCollection, OrderedItem
from dropdown_service.logic.paste_list import MAX_PASTED_ITEMS, parse_pasted_list
from dropdown_service.logic.errors import OrderValidationError
from dropdown_service.logic.repository_categories import normalize_category_name


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point the loader at an empty working directory with no ordering env."""
    monkeypatch.setattr(config_module, "CONFIG_DIR", tmp_path / "config")
    monkeypatch.setattr(config_module, "ROOT_CONFIG_FILE", tmp_path / "dropdowns_config.json")
    for key in (
        "SORT_ORDER_BASE",
        "COMPACT_ON_DELETE",
        "REPAIR_ON_REORDER",
        "CORS_ALLOW_ORIGINS",
        "LOG_LEVEL",
        "ENABLE_TEST_SUPPORT",
        "EVENT_BUFFER_SIZE",
    ):
        monkeypatch.delenv(key, raising=False)
    return tmp_path


def test_defaults(isolated_config) -> None:
    cfg = load_config()
    assert cfg.ordering.base == 1
    assert cfg.ordering.compact_on_delete is True
    assert cfg.ordering.repair_on_reorder is True
    assert cfg.service.cors_origins == ["*"]
    assert cfg.service.enable_test_support is False
    assert cfg.service.event_buffer_size == 1000
    assert cfg.logging.level == "INFO"
    assert cfg.database.dsn.startswith("sqlite")


def test_precedence_env_over_files_over_json(isolated_config, monkeypatch) -> None:
    (isolated_config / "dropdowns_config.json").write_text(
        json.dumps({"ordering": {"base": 0, "compact_on_delete": False}, "logging": {"level": "debug"}}),
        encoding="utf-8",
    )
    (isolated_config / "config").mkdir()
    (isolated_config / "config" / "logging.level").write_text("warning\n", encoding="utf-8")
    monkeypatch.setenv("COMPACT_ON_DELETE", "yes")

    cfg = load_config()
    assert cfg.ordering.base == 0
    assert cfg.ordering.compact_on_delete is True
    assert cfg.logging.level == "WARNING"


def test_service_flags_from_env(isolated_config, monkeypatch) -> None:
    monkeypatch.setenv("ENABLE_TEST_SUPPORT", "on")
    monkeypatch.setenv("EVENT_BUFFER_SIZE", "25")
    cfg = load_config()
    assert cfg.service.enable_test_support is True
    assert cfg.service.event_buffer_size == 25


def test_cors_origins_are_split(isolated_config, monkeypatch) -> None:
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://a.example, https://b.example")
    assert load_config().service.cors_origins == ["https://a.example", "https://b.example"]


@pytest.mark.parametrize(
    "key,value,error",
    [
        ("SORT_ORDER_BASE", "-1", ValidationError),
        ("SORT_ORDER_BASE", "one", ValueError),
        ("LOG_LEVEL", "chatty", ValidationError),
        ("EVENT_BUFFER_SIZE", "0", ValidationError),
    ],
)
def test_invalid_values_raise(isolated_config, monkeypatch, key, value, error) -> None:
    monkeypatch.setenv(key, value)
    with pytest.raises(error):
        load_config()


def test_logging_config_applies_level() -> None:
    cfg = build_logging_config("debug")
    assert cfg["root"]["level"] == "DEBUG"
    assert cfg["handlers"]["console"]["level"] == "DEBUG"
    assert cfg["loggers"]["dropdown_service"]["level"] == "DEBUG"
    assert cfg["loggers"]["uvicorn.access"]["level"] == "INFO"
    assert build_logging_config()["root"]["level"] == "INFO"


# ---------------------------------------------------------------------------
# ETags and header emission
# ---------------------------------------------------------------------------


def _coll(*pairs):
    return OrderedCollection(OrderedItem(i, o) for i, o in pairs)


def test_items_etag_tracks_order_only() -> None:
    base = compute_items_etag("c1", _coll(("a", 1), ("b", 2)))
    assert base == compute_items_etag("c1", _coll(("b", 2), ("a", 1)))
    assert base != compute_items_etag("c1", _coll(("a", 2), ("b", 1)))
    assert base != compute_items_etag("c2", _coll(("a", 1), ("b", 2)))
    assert base.startswith('W/"') and base.endswith('"')


@pytest.mark.parametrize(
    "if_match,matched",
    [
        ('W/"abc"', True),
        ('"abc"', True),
        ("abc", True),
        ('"zzz", W/"abc"', True),
        ("*", True),
        ('"zzz"', False),
        ("", False),
        (None, False),
    ],
)
def test_compare_etag(if_match, matched) -> None:
    assert compare_etag('W/"abc"', if_match) is matched


def test_normalize_etag_token() -> None:
    assert normalize_etag_token(' W/"abc" ') == "abc"
    assert normalize_etag_token(None) == ""


def test_emit_etag_headers() -> None:
    response = Response()
    response.headers["Access-Control-Expose-Headers"] = "X-Request-Id"
    emit_etag_headers(response, scope="items", token='W/"t"')
    assert response.headers["ETag"] == response.headers["Items-ETag"] == 'W/"t"'
    exposed = [h.strip() for h in response.headers["Access-Control-Expose-Headers"].split(",")]
    assert exposed == ["ETag", "Items-ETag", "X-Request-Id"]


def test_emit_etag_headers_skips_blank_and_rejects_unknown_scope() -> None:
    response = Response()
    emit_etag_headers(response, scope="items", token="  ")
    assert "ETag" not in response.headers
    with pytest.raises(ValueError):
        emit_etag_headers(response, scope="screens", token="x")


# ---------------------------------------------------------------------------
# Input parsing
# ---------------------------------------------------------------------------


def test_parse_pasted_list_limits() -> None:
    assert parse_pasted_list(" a \r\n\nb") == ["a", "b"]
    with pytest.raises(OrderValidationError):
        parse_pasted_list("x\n" * (MAX_PASTED_ITEMS + 1))


@pytest.mark.parametrize(
    "raw,expected",
    [("Project Status", "project_status"), ("  Equipment\tType  ", "equipment_type"), ("lower", "lower")],
)
def test_normalize_category_name(raw, expected) -> None:
    assert normalize_category_name(raw) == expected


def test_normalize_category_name_rejects_blank() -> None:
    with pytest.raises(OrderValidationError):
        normalize_category_name("  ")


# ---------------------------------------------------------------------------
# Migrations
# ---------------------------------------------------------------------------


def test_migrations_apply_once_and_skip_rollbacks(tmp_path) -> None:
    engine = create_engine(f"sqlite:///{tmp_path / 'migrations.db'}", future=True)
    try:
        first = apply_migrations(engine)
        assert first == sorted(
            p.name for p in MIGRATIONS_DIR.glob("*.sql") if not p.name.endswith("_rollback.sql")
        )
        assert apply_migrations(engine) == []
        assert applied_migrations(engine) == first
        tables = set(inspect(engine).get_table_names())
        assert {"dropdown_categories", "dropdown_items", "schema_migrations"} <= tables
    finally:
        engine.dispose()


# ---------------------------------------------------------------------------
# Domain event buffer
# ---------------------------------------------------------------------------


def test_event_buffer_keeps_only_the_newest_events() -> None:
    events_module.configure_event_buffer(3)
    try:
        for n in range(5):
            events_module.publish(events_module.ITEMS_CREATED, {"n": n})
        assert [e["payload"]["n"] for e in events_module.get_buffered_events()] == [2, 3, 4]
    finally:
        events_module.configure_event_buffer(events_module.DEFAULT_BUFFER_SIZE)


def test_app_sizes_the_event_buffer_from_config() -> None:
    from dropdown_service.main import create_app

    cfg = load_config()
    cfg.service.event_buffer_size = 7
    try:
        create_app(cfg)
        assert events_module.EVENT_BUFFER.maxlen == 7
    finally:
        events_module.configure_event_buffer(events_module.DEFAULT_BUFFER_SIZE)
