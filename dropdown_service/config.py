"""Configuration loading for the dropdown service.

Rules:
- Primary source: `dropdowns_config.json` at the project root.
- Overrides: environment variables, then optional one-value text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG_FILE = Path("dropdowns_config.json")
logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        # Recoverable: an unreadable override falls through to the next source
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


def _flag(text: Optional[str]) -> bool:
    return str(text).strip().lower() in _TRUE


class DatabaseConfig(BaseModel):
    dsn: str

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class OrderingConfig(BaseModel):
    base: int = Field(default=1, ge=0)
    compact_on_delete: bool = Field(default=True)
    repair_on_reorder: bool = Field(default=True)


class ServiceConfig(BaseModel):
    auto_apply_migrations: bool = Field(default=True)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    enable_test_support: bool = Field(default=False)
    event_buffer_size: int = Field(default=1000, ge=1)


class LoggingConfig(BaseModel):
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def level_must_be_known(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        lv = str(v).strip().upper()
        if lv not in allowed:
            raise ValueError(f"logging.level must be one of {sorted(allowed)}")
        return lv


class AppConfig(BaseModel):
    database: DatabaseConfig
    ordering: OrderingConfig
    service: ServiceConfig
    logging: LoggingConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) dropdowns_config.json at project root
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_CONFIG_FILE)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        if isinstance(cur, list):
            return ",".join(str(v) for v in cur)
        return str(cur) if cur is not None else default

    dsn = (
        _env("TEST_DATABASE_URL")
        or _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or "sqlite+pysqlite:///:memory:"
    )

    base_text = _env("SORT_ORDER_BASE") or _read_config_file("ordering.base") or _base("ordering.base", "1")
    compact_text = _env("COMPACT_ON_DELETE") or _read_config_file("ordering.compact_on_delete") or _base("ordering.compact_on_delete", "true")
    repair_text = _env("REPAIR_ON_REORDER") or _read_config_file("ordering.repair_on_reorder") or _base("ordering.repair_on_reorder", "true")

    migrations_text = _env("AUTO_APPLY_MIGRATIONS") or _read_config_file("service.auto_apply_migrations") or _base("service.auto_apply_migrations", "true")
    origins_text = _env("CORS_ALLOW_ORIGINS") or _read_config_file("service.cors_origins") or _base("service.cors_origins", "*")
    test_support_text = _env("ENABLE_TEST_SUPPORT") or _read_config_file("service.enable_test_support") or _base("service.enable_test_support", "false")
    buffer_text = _env("EVENT_BUFFER_SIZE") or _read_config_file("service.event_buffer_size") or _base("service.event_buffer_size", "1000")

    level_text = _env("LOG_LEVEL") or _read_config_file("logging.level") or _base("logging.level", "INFO")

    try:
        cfg = AppConfig(
            database=DatabaseConfig(dsn=dsn),
            ordering=OrderingConfig(
                base=int(str(base_text).strip()),
                compact_on_delete=_flag(compact_text),
                repair_on_reorder=_flag(repair_text),
            ),
            service=ServiceConfig(
                auto_apply_migrations=_flag(migrations_text),
                cors_origins=[o.strip() for o in str(origins_text).split(",") if o.strip()] or ["*"],
                enable_test_support=_flag(test_support_text),
                event_buffer_size=int(str(buffer_text).strip()),
            ),
            logging=LoggingConfig(level=str(level_text)),
        )
        return cfg
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise
    except ValueError as e:
        # int() on a non-numeric SORT_ORDER_BASE or EVENT_BUFFER_SIZE
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "OrderingConfig",
    "ServiceConfig",
    "LoggingConfig",
    "load_config",
]
