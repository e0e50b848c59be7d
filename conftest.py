"""Shared pytest fixtures for VendorHub tests."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator

import pytest
import pytest_asyncio
from alembic import command
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from vendorhub.db.bootstrap import build_alembic_config
from vendorhub.db.engine import reset_database_state
from vendorhub.db.session import get_sessionmaker
from vendorhub.features.access_control.dependencies import get_current_user_id
from vendorhub.features.access_control.models import (
    PermissionGroup,
    ProtectableResource,
    ResourcePermission,
    UserGroup,
)
from vendorhub.features.access_control.sync import reset_sync_state
from vendorhub.features.users.models import User
from vendorhub.features.users.service import create_user
from vendorhub.main import create_app
from vendorhub.settings import Settings, reload_settings

_ENV_OVERRIDES = {
    "VENDORHUB_ACCESS_CONTROL_AUTO_SEED": "false",
    "VENDORHUB_LOG_LEVEL": "WARNING",
}


@pytest.fixture(scope="session")
def _database_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a file-backed SQLite database URL for the test session."""

    db_path = tmp_path_factory.mktemp("vendorhub-db") / "vendorhub.sqlite"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest.fixture(scope="session", autouse=True)
def _configure_database(_database_url: str) -> Iterator[None]:
    """Apply Alembic migrations against the ephemeral test database."""

    os.environ["VENDORHUB_DATABASE_URL"] = _database_url
    os.environ.update(_ENV_OVERRIDES)
    settings = reload_settings()
    assert settings.database_url == _database_url
    reset_database_state()

    config = build_alembic_config(_database_url)
    command.upgrade(config, "head")

    yield

    command.downgrade(config, "base")
    reset_database_state()
    for env_var in ("VENDORHUB_DATABASE_URL", *_ENV_OVERRIDES):
        os.environ.pop(env_var, None)
    reload_settings()


@pytest.fixture()
def settings() -> Settings:
    return reload_settings()


@pytest.fixture()
def session_factory(settings: Settings) -> async_sessionmaker[AsyncSession]:
    return get_sessionmaker(settings=settings)


@pytest_asyncio.fixture(autouse=True)
async def _clean_database(_configure_database: None) -> AsyncIterator[None]:
    """Start every test from empty tables and an unsynced catalog."""

    reset_sync_state()
    factory = get_sessionmaker(settings=reload_settings())
    async with factory() as session:
        for model in (UserGroup, ResourcePermission, PermissionGroup, ProtectableResource, User):
            await session.execute(delete(model))
        await session.commit()
    yield
    reset_sync_state()


@pytest_asyncio.fixture()
async def session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_factory() as db_session:
        yield db_session


UserFactory = Callable[..., Awaitable[User]]


@pytest_asyncio.fixture()
async def make_user(session_factory: async_sessionmaker[AsyncSession]) -> UserFactory:
    """Return a helper that commits a new user and returns it."""

    counter = 0

    async def _create(
        *,
        email: str | None = None,
        is_active: bool = True,
        is_super_user: bool = False,
    ) -> User:
        nonlocal counter
        counter += 1
        async with session_factory() as db_session:
            user = await create_user(
                session=db_session,
                email=email or f"user{counter}@vendorhub.test",
                display_name=f"User {counter}",
                is_active=is_active,
                is_super_user=is_super_user,
            )
            await db_session.commit()
            return user

    return _create


@pytest.fixture(scope="session")
def app(_configure_database: None) -> FastAPI:
    """Return an application instance for integration-style tests."""

    return create_app()


@pytest.fixture()
def act_as(app: FastAPI) -> Iterator[Callable[[str | None], None]]:
    """Impersonate a user by overriding the authenticated user id."""

    def _apply(user_id: str | None) -> None:
        if user_id is None:
            app.dependency_overrides.pop(get_current_user_id, None)
            return
        app.dependency_overrides[get_current_user_id] = lambda: user_id

    yield _apply

    app.dependency_overrides.pop(get_current_user_id, None)


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Provide an HTTPX async client bound to the FastAPI app."""

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
