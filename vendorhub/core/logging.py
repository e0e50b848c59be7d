"""Logging configuration for the VendorHub runtime."""

from __future__ import annotations

import logging
from logging.config import dictConfig

from vendorhub.settings import Settings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings | None = None) -> None:
    """
    Configure application-wide logging once during startup.
    Safe to call repeatedly; second invocation only adjusts the root level.
    """
    settings = settings or get_settings()
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(settings.log_level)
        return

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": LOG_FORMAT,
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                }
            },
            "root": {"handlers": ["console"], "level": settings.log_level},
            "loggers": {
                "sqlalchemy.engine": {
                    "level": "INFO" if settings.database_echo else "WARNING",
                },
            },
        }
    )


__all__ = ["LOG_FORMAT", "configure_logging"]
