"""FastAPI dependencies for resource-based authorization checks."""

from __future__ import annotations

from typing import Annotated, Any, Callable, Coroutine

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from vendorhub.db.session import get_session

from .authorization import (
    PermissionCheck,
    check_page_permission_by_path,
    check_resource_permission,
)


def get_current_user_id(request: Request) -> str:
    """Return the user id placed on ``request.state`` by the authentication layer."""

    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return str(user_id)


def _forbidden(decision: PermissionCheck) -> HTTPException:
    return HTTPException(
        status.HTTP_403_FORBIDDEN,
        detail=decision.reason or f"Access to {decision.resource_key} denied",
    )


def require_resource(
    resource_key: str,
) -> Callable[[str, AsyncSession], Coroutine[Any, Any, str]]:
    """Return a dependency that enforces access to ``resource_key``."""

    async def dependency(
        user_id: Annotated[str, Depends(get_current_user_id)],
        session: Annotated[AsyncSession, Depends(get_session)],
    ) -> str:
        decision = await check_resource_permission(
            session=session,
            user_id=user_id,
            resource_key=resource_key,
        )
        if not decision.allowed:
            raise _forbidden(decision)
        return user_id

    return dependency


def require_page_path(
    path: str,
) -> Callable[[str, AsyncSession], Coroutine[Any, Any, str]]:
    """Return a dependency that enforces access to the page routed at ``path``."""

    async def dependency(
        user_id: Annotated[str, Depends(get_current_user_id)],
        session: Annotated[AsyncSession, Depends(get_session)],
    ) -> str:
        decision = await check_page_permission_by_path(
            session=session,
            user_id=user_id,
            path=path,
        )
        if not decision.allowed:
            raise _forbidden(decision)
        return user_id

    return dependency


__all__ = ["get_current_user_id", "require_page_path", "require_resource"]
