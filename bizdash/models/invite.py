"""Invites that let a global admin admit a new account."""

import uuid
from datetime import datetime

from pydantic import EmailStr
from sqlmodel import Field, SQLModel

from bizdash.models.base import TimestampMixin, new_uuid


class Invite(TimestampMixin, SQLModel, table=True):
    __tablename__ = "invites"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    email: str = Field(max_length=320, nullable=False, index=True)
    access_key: str = Field(max_length=64, nullable=False)
    invited_by: uuid.UUID | None = Field(default=None, foreign_key="users.id", nullable=True)
    used: bool = Field(default=False)


# ── Pydantic schemas ─────────────────────────────────────────

class InviteCreate(SQLModel):
    email: EmailStr


class InviteCreated(SQLModel):
    """Returned once to the inviting admin; email delivery is out of band."""
    id: uuid.UUID
    email: str
    access_key: str
    created_at: datetime
