"""SQLAlchemy models for protectable resources, groups and grants."""

from __future__ import annotations

from enum import Enum

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint, case
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vendorhub.db import Base, TimestampMixin, ULIDPrimaryKeyMixin
from vendorhub.features.users.models import User

from .registry import PermissionLevel, ResourceType


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


resource_type_enum = SAEnum(
    ResourceType,
    name="resource_type",
    native_enum=False,
    length=20,
    values_callable=_enum_values,
)

permission_level_enum = SAEnum(
    PermissionLevel,
    name="permission_level",
    native_enum=False,
    length=20,
    values_callable=_enum_values,
)


class ProtectableResource(ULIDPrimaryKeyMixin, TimestampMixin, Base):
    """A page or component whose visibility is governed by group grants."""

    __tablename__ = "protectable_resources"

    resource_key: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)
    type: Mapped[ResourceType] = mapped_column(resource_type_enum, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_key: Mapped[str | None] = mapped_column(String(150), nullable=True)
    path: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    required_level: Mapped[PermissionLevel] = mapped_column(
        permission_level_enum,
        nullable=False,
        default=PermissionLevel.VIEW,
    )

    permissions: Mapped[list[ResourcePermission]] = relationship(
        "ResourcePermission",
        back_populates="resource",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def group_ids(self) -> list[str]:
        return [permission.group_id for permission in self.permissions]


# Pages sort ahead of components in every catalog listing.
RESOURCE_TYPE_ORDER = case((ProtectableResource.type == ResourceType.PAGE, 0), else_=1)


class PermissionGroup(ULIDPrimaryKeyMixin, TimestampMixin, Base):
    """Named set of users that resources can be granted to."""

    __tablename__ = "permission_groups"

    name: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    permissions: Mapped[list[ResourcePermission]] = relationship(
        "ResourcePermission",
        back_populates="group",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    memberships: Mapped[list[UserGroup]] = relationship(
        "UserGroup",
        back_populates="group",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ResourcePermission(ULIDPrimaryKeyMixin, TimestampMixin, Base):
    """Grant of one resource to one group."""

    __tablename__ = "resource_permissions"
    __table_args__ = (UniqueConstraint("resource_id", "group_id"),)

    resource_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("protectable_resources.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    group_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("permission_groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    resource: Mapped[ProtectableResource] = relationship(
        "ProtectableResource",
        back_populates="permissions",
    )
    group: Mapped[PermissionGroup] = relationship(
        "PermissionGroup",
        back_populates="permissions",
    )


class UserGroup(ULIDPrimaryKeyMixin, TimestampMixin, Base):
    """Membership of one user in one group."""

    __tablename__ = "user_groups"
    __table_args__ = (UniqueConstraint("user_id", "group_id"),)

    user_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    group_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("permission_groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user: Mapped[User] = relationship("User")
    group: Mapped[PermissionGroup] = relationship(
        "PermissionGroup",
        back_populates="memberships",
    )


__all__ = [
    "PermissionGroup",
    "ProtectableResource",
    "RESOURCE_TYPE_ORDER",
    "ResourcePermission",
    "UserGroup",
    "permission_level_enum",
    "resource_type_enum",
]
