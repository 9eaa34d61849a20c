"""A platform account, member of zero or more tenants."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from bizdash.models.base import TimestampMixin, new_uuid


class User(TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    email: str = Field(max_length=320, unique=True, nullable=False, index=True)
    password_hash: str = Field(nullable=False)
    full_name: str = Field(default="", max_length=255)

    # Platform-wide admin flag. Unrelated to any tenant membership.
    is_admin: bool = Field(default=False)
    is_active: bool = Field(default=True)


# ── Pydantic schemas ─────────────────────────────────────────

class UserRead(SQLModel):
    id: uuid.UUID
    email: str
    full_name: str
    is_admin: bool
    is_active: bool
    created_at: datetime


class AdminUserRead(UserRead):
    """User row as seen by a global admin, with granted task assignees."""
    permissions: list[str] = Field(default_factory=list)
