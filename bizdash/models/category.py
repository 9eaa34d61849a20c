"""Resource categories — tenant-scoped, plus global templates that seed them."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from bizdash.models.base import TimestampMixin, new_uuid


class Category(TimestampMixin, SQLModel, table=True):
    __tablename__ = "categories"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    name: str = Field(max_length=255, nullable=False)
    description: str | None = Field(default=None, max_length=1000)
    image_url: str | None = Field(default=None, max_length=2048)


class CategoryTemplate(TimestampMixin, SQLModel, table=True):
    """Reusable category definition, copied into a tenant on first use."""

    __tablename__ = "category_templates"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False)
    description: str | None = Field(default=None, max_length=1000)
    image_url: str | None = Field(default=None, max_length=2048)
    sort_order: int = Field(default=0)


# ── Pydantic schemas ─────────────────────────────────────────

class CategoryCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    image_url: str | None = None
    tenant_id: uuid.UUID | None = None


class CategoryUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    image_url: str | None = None


class CategoryRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    name: str
    description: str | None
    image_url: str | None
    created_at: datetime


class CategoryTemplateRead(SQLModel):
    id: uuid.UUID
    name: str
    description: str | None
    image_url: str | None
    sort_order: int
