"""Database primitives shared across VendorHub features."""

from .engine import get_engine, render_sync_url, reset_database_state
from .metadata import NAMING_CONVENTION, Base, metadata
from .mixins import TimestampMixin, ULIDPrimaryKeyMixin, generate_ulid, utc_now
from .session import atomic, get_session, get_sessionmaker

__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "TimestampMixin",
    "ULIDPrimaryKeyMixin",
    "atomic",
    "generate_ulid",
    "get_engine",
    "get_session",
    "get_sessionmaker",
    "metadata",
    "render_sync_url",
    "reset_database_state",
    "utc_now",
]
