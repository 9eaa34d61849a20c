"""Global administration — users, task-visibility grants, invites.

Every route here requires the platform-wide ``User.is_admin`` flag.
"""

import logging
import uuid
from collections import defaultdict
from typing import Literal

from fastapi import APIRouter, status
from pydantic import BaseModel
from sqlalchemy import delete, update
from sqlmodel import select

from bizdash.api.deps import GlobalAdmin, Session
from bizdash.core.errors import NotFound, ValidationFailed
from bizdash.core.security import generate_access_key
from bizdash.models.invite import Invite, InviteCreate, InviteCreated
from bizdash.models.membership import Membership
from bizdash.models.prompt import EmailPrompt
from bizdash.models.resource import Resource
from bizdash.models.task import Comment, Task, TaskPermission
from bizdash.models.user import AdminUserRead, User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class PermissionChange(BaseModel):
    user_id: uuid.UUID
    assignee: str
    action: Literal["grant", "remove"] = "grant"


class PermissionsRead(BaseModel):
    user_id: uuid.UUID
    permissions: list[str]


# ── Users ────────────────────────────────────────────────────

@router.get("/users", response_model=list[AdminUserRead])
async def list_users(admin: GlobalAdmin, session: Session) -> list[AdminUserRead]:
    users = (await session.execute(select(User).order_by(User.created_at))).scalars().all()
    grants = (await session.execute(select(TaskPermission))).scalars().all()

    by_user: dict[uuid.UUID, list[str]] = defaultdict(list)
    for grant in grants:
        by_user[grant.user_id].append(grant.assignee)

    return [
        AdminUserRead(**u.model_dump(), permissions=sorted(by_user.get(u.id, [])))
        for u in users
    ]


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: uuid.UUID, admin: GlobalAdmin, session: Session) -> None:
    if user_id == admin.id:
        raise ValidationFailed("Cannot delete your own account")
    user = await session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    await session.execute(delete(TaskPermission).where(TaskPermission.user_id == user_id))
    await session.execute(delete(Membership).where(Membership.user_id == user_id))
    await session.execute(delete(Comment).where(Comment.user_id == user_id))
    await session.execute(delete(EmailPrompt).where(EmailPrompt.created_by == user_id))
    await session.execute(update(Task).where(Task.user_id == user_id).values(user_id=None))
    await session.execute(
        update(Resource).where(Resource.created_by == user_id).values(created_by=None)
    )
    await session.execute(
        update(Invite).where(Invite.invited_by == user_id).values(invited_by=None)
    )
    await session.delete(user)
    await session.commit()
    logger.warning("User %s deleted by admin %s", user_id, admin.id)


# ── Task visibility grants ───────────────────────────────────

@router.post("/permissions", response_model=PermissionsRead)
async def change_permission(
    body: PermissionChange, admin: GlobalAdmin, session: Session,
) -> PermissionsRead:
    """Grant or remove visibility of one assignee's tasks. Granting twice is a no-op."""
    if await session.get(User, body.user_id) is None:
        raise NotFound("User not found")
    assignee = body.assignee.strip()
    if not assignee:
        raise ValidationFailed("Assignee is required")

    if body.action == "remove":
        await session.execute(
            delete(TaskPermission).where(
                TaskPermission.user_id == body.user_id,
                TaskPermission.assignee == assignee,
            )
        )
        await session.commit()
    else:
        existing = await session.execute(
            select(TaskPermission.id).where(
                TaskPermission.user_id == body.user_id,
                TaskPermission.assignee == assignee,
            )
        )
        if existing.first() is None:
            session.add(TaskPermission(user_id=body.user_id, assignee=assignee))
            await session.commit()
        else:
            logger.debug("Grant %s -> %s already present", body.user_id, assignee)

    result = await session.execute(
        select(TaskPermission.assignee)
        .where(TaskPermission.user_id == body.user_id)
        .order_by(TaskPermission.assignee)
    )
    return PermissionsRead(user_id=body.user_id, permissions=list(result.scalars().all()))


# ── Invites ──────────────────────────────────────────────────

@router.post("/invites", response_model=InviteCreated, status_code=status.HTTP_201_CREATED)
async def create_invite(body: InviteCreate, admin: GlobalAdmin, session: Session) -> Invite:
    """Create an invite. The access key is returned once; delivery is up to the admin."""
    invite = Invite(
        email=body.email.lower(),
        access_key=generate_access_key(),
        invited_by=admin.id,
    )
    session.add(invite)
    await session.commit()
    await session.refresh(invite)
    logger.info("Invite %s created for %s by %s", invite.id, invite.email, admin.id)
    return invite
