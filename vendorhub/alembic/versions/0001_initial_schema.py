"""Create users and access-control tables."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


RESOURCE_TYPE = sa.Enum(
    "page",
    "component",
    name="resource_type",
    native_enum=False,
    length=20,
)
PERMISSION_LEVEL = sa.Enum(
    "denied",
    "view",
    "write",
    "admin",
    name="permission_level",
    native_enum=False,
    length=20,
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("email_normalized", sa.String(length=320), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_super_user", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email_normalized", name="uq_users_email_normalized"),
    )

    op.create_table(
        "protectable_resources",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("resource_key", sa.String(length=150), nullable=False),
        sa.Column("type", RESOURCE_TYPE, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("parent_key", sa.String(length=150), nullable=True),
        sa.Column("path", sa.String(length=255), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("required_level", PERMISSION_LEVEL, nullable=False, server_default="view"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_protectable_resources"),
        sa.UniqueConstraint("resource_key", name="uq_protectable_resources_resource_key"),
    )

    op.create_table(
        "permission_groups",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_system", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_permission_groups"),
        sa.UniqueConstraint("name", name="uq_permission_groups_name"),
    )

    op.create_table(
        "resource_permissions",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("resource_id", sa.String(length=26), nullable=False),
        sa.Column("group_id", sa.String(length=26), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_resource_permissions"),
        sa.ForeignKeyConstraint(
            ["resource_id"],
            ["protectable_resources.id"],
            name="fk_resource_permissions_resource_id_protectable_resources",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["group_id"],
            ["permission_groups.id"],
            name="fk_resource_permissions_group_id_permission_groups",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("resource_id", "group_id", name="uq_resource_permissions_resource_id"),
    )
    op.create_index("ix_resource_permissions_resource_id", "resource_permissions", ["resource_id"])
    op.create_index("ix_resource_permissions_group_id", "resource_permissions", ["group_id"])

    op.create_table(
        "user_groups",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("user_id", sa.String(length=26), nullable=False),
        sa.Column("group_id", sa.String(length=26), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_user_groups"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_user_groups_user_id_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["group_id"],
            ["permission_groups.id"],
            name="fk_user_groups_group_id_permission_groups",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("user_id", "group_id", name="uq_user_groups_user_id"),
    )
    op.create_index("ix_user_groups_user_id", "user_groups", ["user_id"])
    op.create_index("ix_user_groups_group_id", "user_groups", ["group_id"])


def downgrade() -> None:
    op.drop_index("ix_user_groups_group_id", table_name="user_groups")
    op.drop_index("ix_user_groups_user_id", table_name="user_groups")
    op.drop_table("user_groups")
    op.drop_index("ix_resource_permissions_group_id", table_name="resource_permissions")
    op.drop_index("ix_resource_permissions_resource_id", table_name="resource_permissions")
    op.drop_table("resource_permissions")
    op.drop_table("permission_groups")
    op.drop_table("protectable_resources")
    op.drop_table("users")
