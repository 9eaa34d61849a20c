"""initial schema

Revision ID: 3f1a9c2e7b40
Revises:
Create Date: 2026-10-19 09:12:44.201733

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b40'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("pin_hash", sa.String(), nullable=True),
        sa.Column("avatar_url", sa.String(2048), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "memberships",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("is_owner", sa.Boolean(), nullable=False),
        # Tri-state: null means never set
        sa.Column("is_admin", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "tenant_id"),
    )
    op.create_index("ix_memberships_user_id", "memberships", ["user_id"])
    op.create_index("ix_memberships_tenant_id", "memberships", ["tenant_id"])

    op.create_table(
        "categories",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("image_url", sa.String(2048), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_categories_tenant_id", "categories", ["tenant_id"])

    op.create_table(
        "category_templates",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("image_url", sa.String(2048), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "resource_templates",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "category_template_id", sa.Uuid(),
            sa.ForeignKey("category_templates.id"), nullable=True,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("description", sa.String(2000), nullable=True),
        sa.Column("image_url", sa.String(2048), nullable=True),
        sa.Column("icon", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_resource_templates_category_template_id",
        "resource_templates", ["category_template_id"],
    )

    op.create_table(
        "resources",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("category_id", sa.Uuid(), sa.ForeignKey("categories.id"), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("description", sa.String(2000), nullable=True),
        sa.Column("image_url", sa.String(2048), nullable=True),
        sa.Column("icon", sa.String(255), nullable=True),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_resources_tenant_id", "resources", ["tenant_id"])
    op.create_index("ix_resources_category_id", "resources", ["category_id"])

    op.create_table(
        "tenant_resource_templates",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column(
            "template_id", sa.Uuid(), sa.ForeignKey("resource_templates.id"), nullable=False,
        ),
        sa.Column("resource_id", sa.Uuid(), sa.ForeignKey("resources.id"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "template_id"),
    )
    op.create_index(
        "ix_tenant_resource_templates_tenant_id", "tenant_resource_templates", ["tenant_id"],
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("status", sa.String(50), nullable=False),
        sa.Column("assignee", sa.String(320), nullable=False),
        sa.Column("priority", sa.String(50), nullable=False),
        sa.Column("due", sa.DateTime(), nullable=True),
        sa.Column("archived", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_tasks_tenant_id", "tasks", ["tenant_id"])
    op.create_index("ix_tasks_assignee", "tasks", ["assignee"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("task_id", sa.Uuid(), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("author", sa.String(255), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_comments_task_id", "comments", ["task_id"])
    op.create_index("ix_comments_tenant_id", "comments", ["tenant_id"])

    op.create_table(
        "task_permissions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("assignee", sa.String(320), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "assignee"),
    )
    op.create_index("ix_task_permissions_user_id", "task_permissions", ["user_id"])

    op.create_table(
        "email_prompts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_email_prompts_tenant_id", "email_prompts", ["tenant_id"])
    op.create_index("ix_email_prompts_created_by", "email_prompts", ["created_by"])

    op.create_table(
        "invites",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("access_key", sa.String(64), nullable=False),
        sa.Column("invited_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("used", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_invites_email", "invites", ["email"])


def downgrade() -> None:
    op.drop_table("invites")
    op.drop_table("email_prompts")
    op.drop_table("task_permissions")
    op.drop_table("comments")
    op.drop_table("tasks")
    op.drop_table("tenant_resource_templates")
    op.drop_table("resources")
    op.drop_table("resource_templates")
    op.drop_table("category_templates")
    op.drop_table("categories")
    op.drop_table("memberships")
    op.drop_table("tenants")
    op.drop_table("users")
