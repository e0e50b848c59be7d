"""Inspect the effective VendorHub configuration."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from sqlalchemy.engine import make_url

from vendorhub.settings import get_settings

from ..core.output import print_json

__all__ = ["dump"]


def _serialise(field: str, value: Any) -> Any:
    if field == "database_url":
        return make_url(value).render_as_string(hide_password=True)
    if isinstance(value, Path):
        return str(value)
    return value


def dump(_: argparse.Namespace) -> None:
    """Print every settings field, masking database credentials."""

    settings = get_settings()
    print_json(
        {
            field: _serialise(field, getattr(settings, field))
            for field in settings.__class__.model_fields
        }
    )
