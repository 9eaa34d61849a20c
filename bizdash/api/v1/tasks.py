"""Task endpoints."""

import logging
import uuid
from collections import defaultdict

from fastapi import APIRouter, Query, status
from pydantic import BaseModel
from sqlmodel import select

from bizdash.api.deps import Authz, Caller, Session
from bizdash.core.errors import NotFound, Unauthorized, ValidationFailed
from bizdash.core.logging import log_security_event
from bizdash.core.security import confirmation_pin_matches
from bizdash.models.base import utcnow
from bizdash.models.task import (
    STATUS_ALIASES,
    UNASSIGNED,
    Comment,
    CommentCreate,
    CommentRead,
    Task,
    TaskCreate,
    TaskRead,
    TaskStatus,
    TaskUpdate,
)
from bizdash.services.authz import Action, authorize, require, visible_assignees

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


# ── Schemas ──────────────────────────────────────────────────

class TaskDelete(BaseModel):
    pin: str
    tenant_id: uuid.UUID | None = None


class TaskArchive(BaseModel):
    archived: bool = True


# ── Routes ───────────────────────────────────────────────────

@router.get("", response_model=list[TaskRead])
async def list_tasks(
    user: Caller,
    authz: Authz,
    session: Session,
    tenant_id: uuid.UUID | None = Query(default=None),
) -> list[TaskRead]:
    """Tasks visible to the caller across their tenants, newest first."""
    if tenant_id is not None:
        membership = await authz.resolve_membership(user.id, tenant_id)
        require(authorize(membership, Action.VIEW_TASKS))
        tenant_ids = [tenant_id]
    else:
        tenant_ids = await authz.tenant_ids(user.id)
    if not tenant_ids:
        return []

    stmt = select(Task).where(Task.tenant_id.in_(tenant_ids))  # type: ignore[attr-defined]
    allowed = visible_assignees(user, await authz.granted_assignees(user.id))
    if allowed is not None:
        stmt = stmt.where(Task.assignee.in_(sorted(allowed)))  # type: ignore[attr-defined]
    stmt = stmt.order_by(Task.created_at.desc())  # type: ignore[union-attr]

    result = await session.execute(stmt)
    tasks = list(result.scalars().all())
    comments = await _comments_by_task(session, [t.id for t in tasks])
    return [_to_read(t, comments.get(t.id, [])) for t in tasks]


@router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(body: TaskCreate, user: Caller, authz: Authz, session: Session) -> TaskRead:
    membership = await authz.resolve_membership(user.id, body.tenant_id)
    require(authorize(membership, Action.CREATE_TASK))

    task = Task(
        tenant_id=membership.tenant_id,
        user_id=user.id,
        title=body.title,
        body=body.body,
        priority=body.priority,
        status=_normalize_status(body.status) if body.status else TaskStatus.TODO,
        assignee=body.assignee or UNASSIGNED,
        due=body.due,
    )
    session.add(task)
    await session.commit()
    await session.refresh(task)
    return _to_read(task, [])


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: uuid.UUID, body: TaskUpdate, user: Caller, authz: Authz, session: Session,
) -> TaskRead:
    membership = await authz.resolve_membership(user.id, body.tenant_id)
    require(authorize(membership, Action.EDIT_TASK))
    task = await _get_or_404(task_id, [membership.tenant_id], session)

    update_data = body.model_dump(exclude_unset=True, exclude={"tenant_id"})
    if update_data.get("status"):
        update_data["status"] = _normalize_status(update_data["status"])
    for field, value in update_data.items():
        if value is None and field in ("title", "body", "status", "priority", "assignee"):
            continue
        setattr(task, field, value)
    task.updated_at = utcnow()

    session.add(task)
    await session.commit()
    await session.refresh(task)
    comments = await _comments_by_task(session, [task.id])
    return _to_read(task, comments.get(task.id, []))


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: uuid.UUID, body: TaskDelete, user: Caller, authz: Authz, session: Session,
) -> None:
    if not confirmation_pin_matches(body.pin):
        log_security_event(logger, "confirmation_pin_mismatch", user_id=user.id, task_id=task_id)
        raise Unauthorized("Invalid PIN")
    membership = await authz.resolve_membership(user.id, body.tenant_id)
    task = await _get_or_404(task_id, [membership.tenant_id], session)

    result = await session.execute(select(Comment).where(Comment.task_id == task.id))
    for comment in result.scalars().all():
        await session.delete(comment)
    await session.delete(task)
    await session.commit()
    logger.info("Task %s deleted by %s", task_id, user.id)


@router.put("/{task_id}/archive", response_model=TaskRead)
async def archive_task(
    task_id: uuid.UUID, body: TaskArchive, user: Caller, authz: Authz, session: Session,
) -> TaskRead:
    """Archive or restore a task in any of the caller's tenants."""
    task = await _get_or_404(task_id, await authz.tenant_ids(user.id), session)
    task.archived = body.archived
    task.updated_at = utcnow()
    session.add(task)
    await session.commit()
    await session.refresh(task)
    comments = await _comments_by_task(session, [task.id])
    return _to_read(task, comments.get(task.id, []))


@router.post(
    "/{task_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    task_id: uuid.UUID, body: CommentCreate, user: Caller, authz: Authz, session: Session,
) -> Comment:
    membership = await authz.resolve_membership(user.id, body.tenant_id)
    require(authorize(membership, Action.COMMENT_TASK))
    task = await _get_or_404(task_id, [membership.tenant_id], session)

    comment = Comment(
        task_id=task.id,
        tenant_id=task.tenant_id,
        user_id=user.id,
        author=body.author or user.full_name or user.email,
        text=body.text,
    )
    session.add(comment)
    await session.commit()
    await session.refresh(comment)
    return comment


# ── Internal helpers ─────────────────────────────────────────

def _normalize_status(value: str) -> str:
    value = STATUS_ALIASES.get(value, value)
    try:
        return TaskStatus(value)
    except ValueError as exc:
        raise ValidationFailed(f"Unknown status '{value}'") from exc


async def _get_or_404(task_id: uuid.UUID, tenant_ids: list[uuid.UUID], session) -> Task:
    stmt = select(Task).where(
        Task.id == task_id,
        Task.tenant_id.in_(tenant_ids),  # type: ignore[attr-defined]
    )
    result = await session.execute(stmt)
    task = result.scalar_one_or_none()
    if task is None:
        raise NotFound("Task not found")
    return task


async def _comments_by_task(session, task_ids: list[uuid.UUID]) -> dict[uuid.UUID, list[Comment]]:
    if not task_ids:
        return {}
    stmt = (
        select(Comment)
        .where(Comment.task_id.in_(task_ids))  # type: ignore[attr-defined]
        .order_by(Comment.created_at.asc())  # type: ignore[union-attr]
    )
    result = await session.execute(stmt)
    grouped: dict[uuid.UUID, list[Comment]] = defaultdict(list)
    for comment in result.scalars().all():
        grouped[comment.task_id].append(comment)
    return grouped


def _to_read(task: Task, comments: list[Comment]) -> TaskRead:
    return TaskRead(
        **task.model_dump(),
        comments=[CommentRead.model_validate(c) for c in comments],
    )
