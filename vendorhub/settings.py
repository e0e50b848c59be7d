"""Application settings for the VendorHub access-control service."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, ClassVar, Protocol, cast, runtime_checkable

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./data/db/vendorhub.sqlite"


class Settings(BaseSettings):
    """Runtime configuration loaded from ``VENDORHUB_*`` environment variables."""

    model_config: ClassVar[SettingsConfigDict] = cast(
        SettingsConfigDict,
        {
            "env_file": ".env",
            "env_prefix": "VENDORHUB_",
            "case_sensitive": False,
            "extra": "ignore",
        },
    )

    app_name: str = Field(
        default="VendorHub Access Control",
        description="Displayed API title.",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Semantic version exposed via OpenAPI.",
    )
    environment: str = Field(
        default="local",
        description="Current runtime environment name.",
    )
    debug: bool = Field(
        default=False,
        description="Enable FastAPI debug mode.",
    )
    api_docs_enabled: bool = Field(
        default=True,
        description="Expose Swagger and ReDoc routes when true.",
    )
    docs_url: str = Field(default="/docs", description="Relative path to Swagger UI.")
    redoc_url: str = Field(default="/redoc", description="Relative path to ReDoc.")
    openapi_url: str = Field(
        default="/openapi.json",
        description="Relative path to the OpenAPI schema.",
    )
    api_prefix: str = Field(
        default="/api",
        description="Prefix applied to every API router.",
    )
    server_host: str = Field(default="127.0.0.1", description="Interface uvicorn binds to.")
    server_port: int = Field(default=8000, ge=1, le=65535, description="Port uvicorn listens on.")
    log_level: str = Field(
        default="INFO",
        description="Python logging level for the root logger.",
    )

    database_url: str = Field(
        default=DEFAULT_DATABASE_URL,
        description="SQLAlchemy database URL using an async driver.",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL emitted by SQLAlchemy (development aid).",
    )
    database_pool_size: int = Field(
        default=5,
        ge=1,
        description="Maximum number of persistent connections in the pool.",
    )
    database_max_overflow: int = Field(
        default=10,
        ge=0,
        description="Additional connections permitted above the pool size.",
    )
    database_pool_timeout: int = Field(
        default=30,
        ge=1,
        description="Seconds to wait for a free connection before timing out.",
    )
    database_auto_migrate: bool = Field(
        default=True,
        description="Apply Alembic migrations when the application starts.",
    )

    access_control_auto_seed: bool = Field(
        default=True,
        description=(
            "Seed protectable resources and the Administrators group on startup. "
            "Failures are logged and never block startup."
        ),
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: Any) -> str:
        candidate = str(value or "").strip().upper()
        if candidate not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level '{value}'")
        return candidate

    @field_validator("api_prefix", mode="before")
    @classmethod
    def _normalise_prefix(cls, value: Any) -> str:
        candidate = str(value or "").strip().rstrip("/")
        if candidate and not candidate.startswith("/"):
            candidate = f"/{candidate}"
        return candidate

    @field_validator("database_url", mode="before")
    @classmethod
    def _strip_database_url(cls, value: Any) -> str:
        candidate = str(value or "").strip()
        if not candidate:
            raise ValueError("database_url must not be empty")
        return candidate

    @property
    def docs_urls(self) -> tuple[str | None, str | None, str | None]:
        """Return docs, redoc and openapi URLs respecting ``api_docs_enabled``."""

        if not self.api_docs_enabled:
            return None, None, None
        return self.docs_url, self.redoc_url, self.openapi_url


def get_settings() -> Settings:
    """Return application settings loaded from the environment."""

    return Settings()


def reload_settings() -> Settings:
    """Reload settings from the environment (alias for :func:`get_settings`)."""

    return get_settings()


@runtime_checkable
class SupportsState(Protocol):
    """Objects carrying a Starlette-style ``state`` attribute."""

    state: Any


def get_app_settings(container: SupportsState) -> Settings:
    """Return settings stored on ``container.state``, initialising if absent."""

    settings = getattr(container.state, "settings", None)
    if isinstance(settings, Settings):
        return settings

    settings = get_settings()
    container.state.settings = settings
    return settings


__all__ = [
    "DEFAULT_DATABASE_URL",
    "PROJECT_ROOT",
    "Settings",
    "get_app_settings",
    "get_settings",
    "reload_settings",
]
