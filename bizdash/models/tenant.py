"""Tenant (organization) model."""

import re
import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from bizdash.models.base import TimestampMixin, new_uuid

PIN_RE = re.compile(r"[0-9]{4}")


def is_valid_pin(pin: str | None) -> bool:
    return pin is not None and PIN_RE.fullmatch(pin) is not None


class Tenant(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False)

    # Argon2 hash of the 4-digit confirmation PIN for destructive actions
    pin_hash: str | None = Field(default=None)
    avatar_url: str | None = Field(default=None, max_length=2048)


# ── Pydantic schemas ─────────────────────────────────────────

class TenantCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    pin: str


class TenantRead(SQLModel):
    id: uuid.UUID
    name: str
    avatar_url: str | None = None
    created_at: datetime
