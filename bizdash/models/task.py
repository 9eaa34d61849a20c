"""Tasks, their comments, and per-user assignee visibility grants."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import Text, UniqueConstraint
from sqlmodel import Column, Field, SQLModel

from bizdash.models.base import TimestampMixin, new_uuid


class TaskStatus(StrEnum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


# Client-facing labels that differ from the stored value
STATUS_ALIASES = {"Completed": TaskStatus.DONE}

UNASSIGNED = "Unassigned"


class Task(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tasks"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    user_id: uuid.UUID | None = Field(default=None, foreign_key="users.id", nullable=True)

    title: str = Field(max_length=255, nullable=False)
    body: str = Field(sa_column=Column(Text, nullable=False))
    status: str = Field(default=TaskStatus.TODO, max_length=50)
    assignee: str = Field(default=UNASSIGNED, max_length=320, index=True)
    priority: str = Field(max_length=50)
    due: datetime | None = Field(default=None)
    archived: bool = Field(default=False)


class Comment(TimestampMixin, SQLModel, table=True):
    __tablename__ = "comments"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    task_id: uuid.UUID = Field(foreign_key="tasks.id", nullable=False, index=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    author: str = Field(default="", max_length=255)
    text: str = Field(sa_column=Column(Text, nullable=False))


class TaskPermission(TimestampMixin, SQLModel, table=True):
    """Grants ``user_id`` visibility of tasks assigned to ``assignee``."""

    __tablename__ = "task_permissions"
    __table_args__ = (UniqueConstraint("user_id", "assignee"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    assignee: str = Field(max_length=320, nullable=False)


# ── Pydantic schemas ─────────────────────────────────────────

class TaskCreate(SQLModel):
    title: str = Field(min_length=1, max_length=255)
    body: str = Field(min_length=1)
    priority: str = Field(min_length=1, max_length=50)
    status: str | None = None
    assignee: str | None = None
    due: datetime | None = None
    tenant_id: uuid.UUID | None = None


class TaskUpdate(SQLModel):
    title: str | None = Field(default=None, max_length=255)
    body: str | None = None
    status: str | None = None
    assignee: str | None = None
    priority: str | None = None
    due: datetime | None = None
    tenant_id: uuid.UUID | None = None


class CommentCreate(SQLModel):
    text: str = Field(min_length=1)
    author: str = Field(default="", max_length=255)
    tenant_id: uuid.UUID | None = None


class CommentRead(SQLModel):
    id: uuid.UUID
    task_id: uuid.UUID
    tenant_id: uuid.UUID
    user_id: uuid.UUID
    author: str
    text: str
    created_at: datetime


class TaskRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    user_id: uuid.UUID | None
    title: str
    body: str
    status: str
    assignee: str
    priority: str
    due: datetime | None
    archived: bool
    created_at: datetime
    updated_at: datetime
    comments: list[CommentRead] = Field(default_factory=list)
