"""User identity rows consulted by access control."""

from __future__ import annotations

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from vendorhub.db import Base, TimestampMixin, ULIDPrimaryKeyMixin


def _normalise_email(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        msg = "Email must not be empty"
        raise ValueError(msg)
    return cleaned


def _clean_display_name(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    return cleaned[:255]


class User(ULIDPrimaryKeyMixin, TimestampMixin, Base):
    """Application user. Authentication lives upstream; only flags are stored here."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), nullable=False)
    email_normalized: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_super_user: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    @validates("email")
    def _validate_email(self, _key: str, value: str) -> str:
        cleaned = _normalise_email(value)
        self.email_normalized = cleaned.lower()
        return cleaned

    @validates("display_name")
    def _validate_display_name(self, _key: str, value: str | None) -> str | None:
        return _clean_display_name(value)

    @property
    def label(self) -> str:
        return self.display_name or self.email


__all__ = ["User"]
