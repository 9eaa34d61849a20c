"""Resource library — global resource templates and their tenant imports."""

import uuid

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from bizdash.models.base import TimestampMixin, new_uuid
from bizdash.models.category import CategoryTemplateRead


class ResourceTemplate(TimestampMixin, SQLModel, table=True):
    __tablename__ = "resource_templates"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    category_template_id: uuid.UUID | None = Field(
        default=None, foreign_key="category_templates.id", nullable=True, index=True,
    )
    title: str = Field(max_length=255, nullable=False)
    url: str = Field(max_length=2048, nullable=False)
    description: str | None = Field(default=None, max_length=2000)
    image_url: str | None = Field(default=None, max_length=2048)
    icon: str | None = Field(default=None, max_length=255)


class TenantResourceTemplate(TimestampMixin, SQLModel, table=True):
    """Records that a template was imported into a tenant as a resource."""

    __tablename__ = "tenant_resource_templates"
    __table_args__ = (UniqueConstraint("tenant_id", "template_id"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    template_id: uuid.UUID = Field(foreign_key="resource_templates.id", nullable=False)
    resource_id: uuid.UUID = Field(foreign_key="resources.id", nullable=False)


# ── Pydantic schemas ─────────────────────────────────────────

class ResourceTemplateRead(SQLModel):
    id: uuid.UUID
    title: str
    url: str
    description: str | None
    image_url: str | None
    icon: str | None
    category: CategoryTemplateRead | None = None


class ResourceOverride(SQLModel):
    """Optional caller edits applied on top of the template when importing."""
    title: str | None = Field(default=None, max_length=255)
    url: str | None = Field(default=None, max_length=2048)
    description: str | None = Field(default=None, max_length=2000)
    image_url: str | None = None
    icon: str | None = None


class LibraryImport(SQLModel):
    template_id: uuid.UUID
    tenant_id: uuid.UUID
    resource: ResourceOverride | None = None
