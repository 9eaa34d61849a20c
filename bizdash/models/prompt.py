"""Email prompts — reusable instructions for the email assistant."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from bizdash.models.base import TimestampMixin, new_uuid


class PromptType(StrEnum):
    RESPONSE = "response"
    REWRITE = "rewrite"


class EmailPrompt(TimestampMixin, SQLModel, table=True):
    __tablename__ = "email_prompts"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    created_by: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    title: str = Field(max_length=255, nullable=False)
    prompt: str = Field(sa_column=Column(Text, nullable=False))
    type: PromptType = Field(nullable=False)
    description: str | None = Field(default=None, max_length=1000)


# ── Pydantic schemas ─────────────────────────────────────────

class EmailPromptCreate(SQLModel):
    tenant_id: uuid.UUID
    title: str = Field(min_length=1, max_length=255)
    prompt: str = Field(min_length=1)
    type: PromptType
    description: str | None = Field(default=None, max_length=1000)


class EmailPromptRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    tenant_name: str | None = None
    created_by: uuid.UUID
    title: str
    prompt: str
    type: PromptType
    description: str | None
    created_at: datetime
    updated_at: datetime
