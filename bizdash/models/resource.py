"""A bookmarked business tool or website of a tenant."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from bizdash.models.base import TimestampMixin, new_uuid


class Resource(TimestampMixin, SQLModel, table=True):
    __tablename__ = "resources"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    category_id: uuid.UUID | None = Field(
        default=None, foreign_key="categories.id", nullable=True, index=True,
    )
    title: str = Field(max_length=255, nullable=False)
    url: str = Field(max_length=2048, nullable=False)
    description: str | None = Field(default=None, max_length=2000)
    image_url: str | None = Field(default=None, max_length=2048)
    icon: str | None = Field(default=None, max_length=255)
    created_by: uuid.UUID | None = Field(default=None, foreign_key="users.id", nullable=True)


# ── Pydantic schemas ─────────────────────────────────────────

class ResourceCreate(SQLModel):
    title: str = Field(min_length=1, max_length=255)
    url: str = Field(min_length=1, max_length=2048)
    description: str | None = Field(default=None, max_length=2000)
    image_url: str | None = None
    icon: str | None = None
    category_id: uuid.UUID | None = None
    tenant_id: uuid.UUID | None = None


class ResourceUpdate(SQLModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    url: str | None = Field(default=None, min_length=1, max_length=2048)
    description: str | None = Field(default=None, max_length=2000)
    image_url: str | None = None
    icon: str | None = None
    category_id: uuid.UUID | None = None


class ResourceRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    category_id: uuid.UUID | None
    title: str
    url: str
    description: str | None
    image_url: str | None
    icon: str | None
    created_by: uuid.UUID | None
    created_at: datetime
    updated_at: datetime
