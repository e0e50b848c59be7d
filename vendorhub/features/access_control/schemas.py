"""Pydantic schemas for the access-control API."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, model_validator

from vendorhub.core.schema import BaseSchema

from .registry import PermissionLevel, ResourceType


class PermissionCheckRead(BaseSchema):
    allowed: bool
    resource_key: str
    resource_type: ResourceType
    reason: str | None = None


class PermissionCheckRequest(BaseSchema):
    """Either a batch of resource keys or a single route path."""

    resource_keys: list[str] | None = Field(default=None, min_length=1)
    path: str | None = Field(default=None, min_length=1)

    @model_validator(mode="after")
    def _require_target(self) -> PermissionCheckRequest:
        if (self.resource_keys is None) == (self.path is None):
            raise ValueError("Provide exactly one of resource_keys or path")
        return self


class PermissionCheckBatchRead(BaseSchema):
    checks: dict[str, PermissionCheckRead]


class AccessiblePagesRead(BaseSchema):
    paths: list[str]


class EffectivePermissionsRead(BaseSchema):
    user_id: str
    is_super_user: bool
    group_ids: list[str]
    accessible_resources: list[str]


class GroupRef(BaseSchema):
    id: str
    name: str
    is_system: bool


class GroupCreate(BaseSchema):
    name: str = Field(min_length=1, max_length=150)
    description: str | None = None


class GroupUpdate(BaseSchema):
    name: str = Field(min_length=1, max_length=150)
    description: str | None = None


class GroupRead(BaseSchema):
    id: str
    name: str
    description: str | None = None
    is_system: bool
    created_at: datetime
    updated_at: datetime


class GroupSummaryRead(GroupRead):
    member_count: int
    permission_count: int


class GroupListRead(BaseSchema):
    items: list[GroupSummaryRead]
    total: int
    limit: int
    offset: int


class GroupMemberRead(BaseSchema):
    user_id: str
    email: str
    display_name: str | None = None


class GroupResourceRead(BaseSchema):
    resource_id: str
    resource_key: str
    name: str


class GroupDetailRead(GroupRead):
    members: list[GroupMemberRead]
    resources: list[GroupResourceRead]


class ResourceRead(BaseSchema):
    id: str
    resource_key: str
    type: ResourceType
    name: str
    description: str | None = None
    parent_key: str | None = None
    path: str | None = None
    sort_order: int
    is_active: bool
    required_level: PermissionLevel
    groups: list[GroupRef]


class PermissionsOverviewRead(BaseSchema):
    resources: list[ResourceRead]
    groups: list[GroupRef]


class ResourceAssignment(BaseSchema):
    resource_id: str
    group_ids: list[str] = Field(default_factory=list)


class ResourceAssignmentsUpdate(BaseSchema):
    assignments: list[ResourceAssignment] = Field(min_length=1)


class ResourceUpdate(BaseSchema):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    sort_order: int | None = None
    required_level: PermissionLevel | None = None
    is_active: bool | None = None


class UserAccessUpdate(BaseSchema):
    is_active: bool | None = None
    is_super_user: bool | None = None
    group_ids: list[str] | None = None


class UserAccessRead(BaseSchema):
    id: str
    email: str
    display_name: str | None = None
    is_active: bool
    is_super_user: bool
    group_ids: list[str]


CheckListType = Literal["pages", "all"]


__all__ = [
    "AccessiblePagesRead",
    "CheckListType",
    "EffectivePermissionsRead",
    "GroupCreate",
    "GroupDetailRead",
    "GroupListRead",
    "GroupMemberRead",
    "GroupRead",
    "GroupRef",
    "GroupResourceRead",
    "GroupSummaryRead",
    "GroupUpdate",
    "PermissionCheckBatchRead",
    "PermissionCheckRead",
    "PermissionCheckRequest",
    "PermissionsOverviewRead",
    "ResourceAssignment",
    "ResourceAssignmentsUpdate",
    "ResourceRead",
    "ResourceUpdate",
    "UserAccessRead",
    "UserAccessUpdate",
]
