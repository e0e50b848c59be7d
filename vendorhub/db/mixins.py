"""Reusable SQLAlchemy mixins and helpers for VendorHub models."""

from __future__ import annotations

from datetime import UTC, datetime
from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column
from ulid import ULID

__all__ = [
    "generate_ulid",
    "utc_now",
    "TimestampMixin",
    "ULIDPrimaryKeyMixin",
]


def generate_ulid() -> str:
    """Return a lexicographically sortable ULID string."""

    return str(ULID())


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class ULIDPrimaryKeyMixin:
    """Mixin that supplies a ULID-backed primary key column."""

    id: Mapped[str] = mapped_column(
        String(26),
        primary_key=True,
        default=generate_ulid,
    )


class TimestampMixin:
    """Mixin that records created/updated timestamps as timezone-aware datetimes."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )
