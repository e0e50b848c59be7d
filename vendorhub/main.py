"""VendorHub access-control FastAPI application entry point."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .core.errors import register_exception_handlers
from .core.logging import configure_logging
from .db.bootstrap import ensure_database_ready
from .db.session import get_sessionmaker
from .features.access_control.bootstrap import initialize_access_control_safe
from .features.access_control.router import router as access_control_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Return a configured FastAPI application."""

    settings = settings or get_settings()
    configure_logging(settings)

    docs_url, redoc_url, openapi_url = settings.docs_urls

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.settings = settings
        if settings.database_auto_migrate:
            await ensure_database_ready(settings)
        if settings.access_control_auto_seed:
            result = await initialize_access_control_safe(
                session_factory=get_sessionmaker(settings),
            )
            if result is not None:
                logger.info(
                    "access control ready (%d resources added, %d skipped)",
                    result.sync.added,
                    result.sync.skipped,
                )
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url=docs_url,
        redoc_url=redoc_url,
        openapi_url=openapi_url,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_exception_handlers(app)
    app.include_router(access_control_router, prefix=settings.api_prefix)
    return app


def start(host: str | None = None, port: int | None = None, reload: bool = False) -> None:
    """Start uvicorn serving the VendorHub application."""

    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "vendorhub.main:create_app",
        host=host or settings.server_host,
        port=port or settings.server_port,
        reload=reload,
        factory=True,
    )


__all__ = ["create_app", "start"]
