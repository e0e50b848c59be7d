"""Domain errors raised by access-control services."""

from __future__ import annotations

from starlette import status

from vendorhub.core.errors import ApplicationError


class AccessControlError(ApplicationError):
    code = "ACCESS_CONTROL_ERROR"


class GroupValidationError(AccessControlError):
    code = "GROUP_INVALID"
    status_code = status.HTTP_400_BAD_REQUEST


class GroupNotFoundError(AccessControlError):
    code = "GROUP_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class GroupConflictError(AccessControlError):
    code = "GROUP_CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class SystemGroupError(AccessControlError):
    """Raised when an operation would remove a system group."""

    code = "SYSTEM_GROUP_PROTECTED"
    status_code = status.HTTP_409_CONFLICT


class ResourceValidationError(AccessControlError):
    code = "RESOURCE_INVALID"
    status_code = status.HTTP_400_BAD_REQUEST


class ResourceNotFoundError(AccessControlError):
    code = "RESOURCE_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class UserNotFoundError(AccessControlError):
    code = "USER_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class LastSuperUserError(AccessControlError):
    """Raised instead of demoting or deactivating the last active super-user."""

    code = "LAST_SUPER_USER"
    status_code = status.HTTP_409_CONFLICT


__all__ = [
    "AccessControlError",
    "GroupConflictError",
    "GroupNotFoundError",
    "GroupValidationError",
    "LastSuperUserError",
    "ResourceNotFoundError",
    "ResourceValidationError",
    "SystemGroupError",
    "UserNotFoundError",
]
