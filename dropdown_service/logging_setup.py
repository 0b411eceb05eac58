"""Central logging configuration for the dropdown service.

Applies a root stdout handler so all module loggers emit without per-module
setup. The ``dropdown_service`` logger tree and the uvicorn loggers share the
console handler; the configured level applies to the root and the service
tree while uvicorn stays at INFO.
"""
from __future__ import annotations
import logging
from logging.config import dictConfig

SERVICE_LOGGER = "dropdown_service"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def build_logging_config(level: str = "INFO") -> dict:
    """Return the dictConfig payload with ``level`` applied to root and the service."""
    lv = str(level or "INFO").upper()
    loggers = {
        SERVICE_LOGGER: {"level": lv, "handlers": ["console"], "propagate": False},
    }
    for name in _UVICORN_LOGGERS:
        loggers[name] = {"level": "INFO", "handlers": ["console"], "propagate": False}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"service": {"format": _FORMAT}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": lv,
                "formatter": "service",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": lv, "handlers": ["console"]},
        "loggers": loggers,
    }


def configure_logging(level: str = "INFO") -> None:
    """Configure application-wide logging once.

    If the root logger already has handlers, return to prevent duplicate output
    (important under reloaders/watchers and pytest's capture handlers).
    """
    root = logging.getLogger()
    if root.handlers:
        return
    dictConfig(build_logging_config(level))
