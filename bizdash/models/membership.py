"""Membership model — joins a user to a tenant with role flags."""

import uuid
from enum import StrEnum

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from bizdash.models.base import TimestampMixin, new_uuid


class AdminFlag(StrEnum):
    """Tenant admin flag. Stored as a nullable boolean.

    ``UNSET`` (null) is a distinct state from ``MEMBER`` (explicit false).
    """

    UNSET = "unset"
    MEMBER = "member"
    ADMIN = "admin"

    @classmethod
    def from_column(cls, value: bool | None) -> "AdminFlag":
        if value is None:
            return cls.UNSET
        return cls.ADMIN if value else cls.MEMBER

    def to_column(self) -> bool | None:
        if self is AdminFlag.UNSET:
            return None
        return self is AdminFlag.ADMIN


class Membership(TimestampMixin, SQLModel, table=True):
    __tablename__ = "memberships"
    __table_args__ = (UniqueConstraint("user_id", "tenant_id"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    is_owner: bool = Field(default=False)
    is_admin: bool | None = Field(default=None, nullable=True)

    @property
    def admin_flag(self) -> AdminFlag:
        return AdminFlag.from_column(self.is_admin)


# ── Pydantic schemas ─────────────────────────────────────────

class MembershipRead(SQLModel):
    tenant_id: uuid.UUID
    tenant_name: str
    is_owner: bool
    is_admin: bool | None


class MemberRead(SQLModel):
    user_id: uuid.UUID
    email: str
    full_name: str
    is_owner: bool
    is_admin: bool | None


class MemberAdd(SQLModel):
    email: str = Field(max_length=320)


class RoleUpdate(SQLModel):
    is_admin: bool | None
