"""Canonical catalog of protectable pages and components.

Resource keys are the only link between code and the database: code refers to
``page:vendors`` and the store maps that key to whichever groups an
administrator has granted. Keys are never reused once shipped.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum


class ResourceType(str, Enum):
    """Kind of protectable resource."""

    PAGE = "page"
    COMPONENT = "component"


class PermissionLevel(str, Enum):
    """Access level recorded on a resource as administrator metadata."""

    DENIED = "denied"
    VIEW = "view"
    WRITE = "write"
    ADMIN = "admin"


PERMISSION_HIERARCHY: Mapping[PermissionLevel, int] = {
    PermissionLevel.DENIED: 0,
    PermissionLevel.VIEW: 1,
    PermissionLevel.WRITE: 2,
    PermissionLevel.ADMIN: 3,
}


def has_permission_level(
    user_level: PermissionLevel | str,
    required_level: PermissionLevel | str,
) -> bool:
    """Return ``True`` when ``user_level`` meets or exceeds ``required_level``."""

    return (
        PERMISSION_HIERARCHY[PermissionLevel(user_level)]
        >= PERMISSION_HIERARCHY[PermissionLevel(required_level)]
    )


@dataclass(frozen=True)
class ResourceDefinition:
    """Seed data for one protectable resource."""

    resource_key: str
    type: ResourceType
    name: str
    description: str
    sort_order: int
    parent_key: str | None = None
    path: str | None = None
    required_level: PermissionLevel = PermissionLevel.VIEW


ACCESS_CONTROL_RESOURCE_KEY = "page:settings-access-control"
ADMINISTRATORS_GROUP_NAME = "Administrators"
ADMINISTRATORS_GROUP_DESCRIPTION = (
    "Full access to settings and user management. Members can manage other "
    "users, groups, and system configuration."
)


def resource_key_for_path(
    path: str,
    *,
    resource_type: ResourceType = ResourceType.PAGE,
) -> str:
    """Derive the resource key for a route path.

    ``/settings/configuration`` becomes ``page:settings-configuration``.
    """

    slug = path.strip().strip("/")
    if not slug:
        msg = "Path must not be empty"
        raise ValueError(msg)
    return f"{ResourceType(resource_type).value}:{slug.replace('/', '-')}"


def page_key(slug: str) -> str:
    return f"{ResourceType.PAGE.value}:{slug}"


def component_key(slug: str) -> str:
    return f"{ResourceType.COMPONENT.value}:{slug}"


def resource_type_for_key(resource_key: str) -> ResourceType:
    """Infer the resource type from a key prefix, defaulting to pages."""

    if resource_key.startswith(f"{ResourceType.COMPONENT.value}:"):
        return ResourceType.COMPONENT
    return ResourceType.PAGE


PROTECTABLE_PAGES: tuple[ResourceDefinition, ...] = (
    ResourceDefinition(
        resource_key="page:dashboard",
        type=ResourceType.PAGE,
        name="Dashboard",
        description="Main dashboard with overview metrics",
        path="/dashboard",
        sort_order=1,
    ),
    ResourceDefinition(
        resource_key="page:vendors",
        type=ResourceType.PAGE,
        name="Vendors",
        description="Vendor management and listing",
        path="/vendors",
        sort_order=2,
    ),
    ResourceDefinition(
        resource_key="page:team-members",
        type=ResourceType.PAGE,
        name="Team Members",
        description="Team member management",
        path="/team-members",
        sort_order=3,
    ),
    ResourceDefinition(
        resource_key="page:timesheet",
        type=ResourceType.PAGE,
        name="Timesheet",
        description="Timesheet entries and tracking",
        path="/timesheet",
        sort_order=4,
    ),
    ResourceDefinition(
        resource_key="page:invoices",
        type=ResourceType.PAGE,
        name="Invoices",
        description="Invoice management and validation",
        path="/invoices",
        sort_order=5,
    ),
    ResourceDefinition(
        resource_key="page:contracts",
        type=ResourceType.PAGE,
        name="Contracts",
        description="Contract management",
        path="/contracts",
        sort_order=6,
    ),
    ResourceDefinition(
        resource_key="page:analytics",
        type=ResourceType.PAGE,
        name="Analytics",
        description="Analytics and insights",
        path="/analytics",
        sort_order=7,
    ),
    ResourceDefinition(
        resource_key="page:reports",
        type=ResourceType.PAGE,
        name="Reports",
        description="Report generation and viewing",
        path="/reports",
        sort_order=8,
    ),
    ResourceDefinition(
        resource_key="page:settings",
        type=ResourceType.PAGE,
        name="Settings",
        description="System settings and configuration",
        path="/settings",
        sort_order=9,
    ),
    ResourceDefinition(
        resource_key="page:settings-roles",
        type=ResourceType.PAGE,
        name="Settings - Roles",
        description="Job role definitions",
        path="/settings/roles",
        parent_key="page:settings",
        sort_order=10,
    ),
    ResourceDefinition(
        resource_key="page:settings-rate-cards",
        type=ResourceType.PAGE,
        name="Settings - Rate Cards",
        description="Vendor pricing templates",
        path="/settings/rate-cards",
        parent_key="page:settings",
        sort_order=11,
    ),
    ResourceDefinition(
        resource_key="page:settings-exchange-rates",
        type=ResourceType.PAGE,
        name="Settings - Exchange Rates",
        description="Currency exchange rates",
        path="/settings/exchange-rates",
        parent_key="page:settings",
        sort_order=12,
    ),
    ResourceDefinition(
        resource_key="page:settings-configuration",
        type=ResourceType.PAGE,
        name="Settings - Configuration",
        description="System-wide configuration",
        path="/settings/configuration",
        parent_key="page:settings",
        sort_order=13,
        required_level=PermissionLevel.ADMIN,
    ),
    ResourceDefinition(
        resource_key=ACCESS_CONTROL_RESOURCE_KEY,
        type=ResourceType.PAGE,
        name="Settings - Access Control",
        description="User and group management, permissions",
        path="/settings/access-control",
        parent_key="page:settings",
        sort_order=14,
        required_level=PermissionLevel.ADMIN,
    ),
    ResourceDefinition(
        resource_key="page:settings-email",
        type=ResourceType.PAGE,
        name="Settings - Email",
        description="SMTP email configuration",
        path="/settings/email",
        parent_key="page:settings",
        sort_order=15,
        required_level=PermissionLevel.ADMIN,
    ),
    ResourceDefinition(
        resource_key="page:reporting",
        type=ResourceType.PAGE,
        name="Reporting",
        description="Weekly vendor reporting section",
        path="/reporting",
        sort_order=16,
    ),
    ResourceDefinition(
        resource_key="page:reporting-create",
        type=ResourceType.PAGE,
        name="Create Report",
        description="Create and edit weekly vendor reports",
        path="/reporting/create",
        parent_key="page:reporting",
        sort_order=17,
    ),
)


PROTECTABLE_COMPONENTS: tuple[ResourceDefinition, ...] = (
    ResourceDefinition(
        resource_key="component:vendor-documents",
        type=ResourceType.COMPONENT,
        name="Vendor Documents",
        description="Documents section on vendor detail page",
        parent_key="page:vendors",
        sort_order=1,
    ),
    ResourceDefinition(
        resource_key="component:vendor-contract-period",
        type=ResourceType.COMPONENT,
        name="Vendor Contract Period",
        description="Contract period section on vendor detail page",
        parent_key="page:vendors",
        sort_order=2,
    ),
    ResourceDefinition(
        resource_key="component:vendor-tags",
        type=ResourceType.COMPONENT,
        name="Vendor Tags",
        description="Tags section on vendor detail page",
        parent_key="page:vendors",
        sort_order=3,
    ),
    # Delete actions ----------------------------------------------------
    ResourceDefinition(
        resource_key="component:vendor-delete",
        type=ResourceType.COMPONENT,
        name="Delete Vendors",
        description="Ability to delete vendor records",
        parent_key="page:vendors",
        sort_order=10,
    ),
    ResourceDefinition(
        resource_key="component:team-member-delete",
        type=ResourceType.COMPONENT,
        name="Delete Team Members",
        description="Ability to delete team member records",
        parent_key="page:team-members",
        sort_order=11,
    ),
    ResourceDefinition(
        resource_key="component:contract-delete",
        type=ResourceType.COMPONENT,
        name="Delete Contracts",
        description="Ability to delete contract records",
        parent_key="page:contracts",
        sort_order=12,
    ),
    ResourceDefinition(
        resource_key="component:invoice-delete",
        type=ResourceType.COMPONENT,
        name="Delete Invoices",
        description="Ability to delete invoice records",
        parent_key="page:invoices",
        sort_order=13,
    ),
    ResourceDefinition(
        resource_key="component:rate-card-delete",
        type=ResourceType.COMPONENT,
        name="Delete Rate Cards",
        description="Ability to delete rate card records",
        parent_key="page:settings-rate-cards",
        sort_order=14,
    ),
    ResourceDefinition(
        resource_key="component:role-delete",
        type=ResourceType.COMPONENT,
        name="Delete Roles",
        description="Ability to delete job role records",
        parent_key="page:settings-roles",
        sort_order=15,
    ),
    ResourceDefinition(
        resource_key="component:exchange-rate-delete",
        type=ResourceType.COMPONENT,
        name="Delete Exchange Rates",
        description="Ability to delete exchange rate records",
        parent_key="page:settings-exchange-rates",
        sort_order=16,
    ),
    ResourceDefinition(
        resource_key="component:document-delete",
        type=ResourceType.COMPONENT,
        name="Delete Documents",
        description="Ability to delete vendor documents",
        parent_key="page:vendors",
        sort_order=17,
    ),
    ResourceDefinition(
        resource_key="component:user-delete",
        type=ResourceType.COMPONENT,
        name="Delete Users",
        description="Ability to delete user accounts",
        parent_key=ACCESS_CONTROL_RESOURCE_KEY,
        sort_order=18,
    ),
    ResourceDefinition(
        resource_key="component:group-delete",
        type=ResourceType.COMPONENT,
        name="Delete Groups",
        description="Ability to delete permission groups",
        parent_key=ACCESS_CONTROL_RESOURCE_KEY,
        sort_order=19,
    ),
    ResourceDefinition(
        resource_key="component:tag-delete",
        type=ResourceType.COMPONENT,
        name="Delete Tags",
        description="Ability to delete tags",
        parent_key="page:vendors",
        sort_order=20,
    ),
)


def validate_catalog(definitions: Iterable[ResourceDefinition]) -> None:
    """Raise ``ValueError`` when the catalog is internally inconsistent."""

    items = tuple(definitions)
    keys: set[str] = set()
    for definition in items:
        if definition.resource_key in keys:
            msg = f"Duplicate resource key '{definition.resource_key}'"
            raise ValueError(msg)
        keys.add(definition.resource_key)
        prefix = f"{ResourceType(definition.type).value}:"
        if not definition.resource_key.startswith(prefix):
            msg = (
                f"Resource key '{definition.resource_key}' does not match "
                f"its type '{ResourceType(definition.type).value}'"
            )
            raise ValueError(msg)

    for definition in items:
        if definition.parent_key is not None and definition.parent_key not in keys:
            msg = (
                f"Resource '{definition.resource_key}' references unknown parent "
                f"'{definition.parent_key}'"
            )
            raise ValueError(msg)


ALL_PROTECTABLE_RESOURCES: tuple[ResourceDefinition, ...] = (
    PROTECTABLE_PAGES + PROTECTABLE_COMPONENTS
)
validate_catalog(ALL_PROTECTABLE_RESOURCES)

RESOURCE_REGISTRY: Mapping[str, ResourceDefinition] = {
    definition.resource_key: definition for definition in ALL_PROTECTABLE_RESOURCES
}


__all__ = [
    "ACCESS_CONTROL_RESOURCE_KEY",
    "ADMINISTRATORS_GROUP_DESCRIPTION",
    "ADMINISTRATORS_GROUP_NAME",
    "ALL_PROTECTABLE_RESOURCES",
    "PERMISSION_HIERARCHY",
    "PROTECTABLE_COMPONENTS",
    "PROTECTABLE_PAGES",
    "PermissionLevel",
    "RESOURCE_REGISTRY",
    "ResourceDefinition",
    "ResourceType",
    "component_key",
    "has_permission_level",
    "page_key",
    "resource_key_for_path",
    "resource_type_for_key",
    "validate_catalog",
]
