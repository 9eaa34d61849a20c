"""Tenant authorization and role resolution.

Every tenant-scoped route goes through the same steps:

  1. Resolve the caller (``bizdash.api.deps.get_current_user``)
  2. Resolve the caller's membership of the target tenant, or of their
     implicit default tenant when the request names none
  3. Ask ``authorize`` whether the membership may perform the action
  4. Mutate / read data

The policy functions in this module are pure: they take rows that were
already loaded and return a ``Decision``. ``AuthzResolver`` does the reads.
All checks fail closed.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from bizdash.core.errors import DashboardError, NotAMember, Unauthorized, ValidationFailed
from bizdash.core.logging import log_security_event
from bizdash.core.security import verify_pin
from bizdash.models.membership import AdminFlag, Membership
from bizdash.models.task import TaskPermission
from bizdash.models.tenant import Tenant
from bizdash.models.user import User

logger = logging.getLogger(__name__)


class Action(StrEnum):
    VIEW_TASKS = "view_tasks"
    VIEW_RESOURCES = "view_resources"
    VIEW_PROMPTS = "view_prompts"
    VIEW_MEMBERS = "view_members"
    CREATE_TASK = "create_task"
    EDIT_TASK = "edit_task"
    COMMENT_TASK = "comment_task"
    CREATE_RESOURCE = "create_resource"
    EDIT_RESOURCE = "edit_resource"
    CREATE_PROMPT = "create_prompt"
    CREATE_CATEGORY = "create_category"
    EDIT_PROMPT = "edit_prompt"
    DELETE_PROMPT = "delete_prompt"
    EDIT_CATEGORY = "edit_category"
    DELETE_CATEGORY = "delete_category"
    MANAGE_MEMBERS = "manage_members"


# Any membership row suffices
MEMBER_ACTIONS = frozenset({
    Action.VIEW_TASKS,
    Action.VIEW_RESOURCES,
    Action.VIEW_PROMPTS,
    Action.VIEW_MEMBERS,
    Action.CREATE_TASK,
    Action.EDIT_TASK,
    Action.COMMENT_TASK,
    Action.CREATE_RESOURCE,
    Action.EDIT_RESOURCE,
    Action.CREATE_PROMPT,
    Action.CREATE_CATEGORY,
})

# Creator-id equality, independent of role
CREATOR_ACTIONS = frozenset({Action.EDIT_PROMPT, Action.DELETE_PROMPT})

# Owner, or an admin flag that is not explicitly false
CATEGORY_ADMIN_ACTIONS = frozenset({Action.EDIT_CATEGORY, Action.DELETE_CATEGORY})

OWNER_ACTIONS = frozenset({Action.MANAGE_MEMBERS})

ONLY_ORGANIZATION_DETAIL = (
    "Cannot delete your only organization. Create another organization first."
)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str | None = None
    denial: type[DashboardError] = Unauthorized

    @classmethod
    def allow(cls) -> Decision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str, denial: type[DashboardError] = Unauthorized) -> Decision:
        return cls(allowed=False, reason=reason, denial=denial)

    def __bool__(self) -> bool:
        return self.allowed


def authorize(
    membership: Membership | None,
    action: Action,
    *,
    caller_id: uuid.UUID | None = None,
    creator_id: uuid.UUID | None = None,
) -> Decision:
    """Decide whether ``membership`` may perform ``action``."""
    if action in CREATOR_ACTIONS:
        if caller_id is not None and creator_id is not None and caller_id == creator_id:
            return Decision.allow()
        return Decision.deny("Only the creator can change this prompt")

    if membership is None:
        return Decision.deny("Not a member of this organization")

    if action in MEMBER_ACTIONS:
        return Decision.allow()

    if action in CATEGORY_ADMIN_ACTIONS:
        if membership.is_owner:
            return Decision.allow()
        flag = membership.admin_flag
        if flag is AdminFlag.MEMBER:
            return Decision.deny("Only owners and admins can manage categories")
        # UNSET has always been treated like ADMIN here
        return Decision.allow()

    if action in OWNER_ACTIONS:
        if membership.is_owner:
            return Decision.allow()
        return Decision.deny("Must be an owner to manage members")

    return Decision.deny(f"Unknown action '{action}'")


def authorize_tenant_deletion(
    membership: Membership | None,
    tenant: Tenant,
    *,
    confirm_name: str | None,
    pin: str | None,
    owned_tenant_count: int,
) -> Decision:
    """Owner, owns ≥ 2 tenants, exact name, exact tenant PIN."""
    if membership is None or not membership.is_owner:
        return Decision.deny("Only organization owners can delete organizations")
    if owned_tenant_count <= 1:
        return Decision.deny(ONLY_ORGANIZATION_DETAIL, denial=ValidationFailed)
    if confirm_name != tenant.name:
        return Decision.deny("Organization name does not match")
    if not verify_pin(pin, tenant.pin_hash):
        return Decision.deny("Invalid PIN")
    return Decision.allow()


def authorize_global_admin(user: User) -> Decision:
    if user.is_admin:
        return Decision.allow()
    return Decision.deny("Admin access required")


def require(decision: Decision, **context: object) -> None:
    """Raise the decision's denial error unless it allows."""
    if decision.allowed:
        return
    log_security_event(logger, "authorization_denied", reason=decision.reason, **context)
    raise decision.denial(decision.reason)


def visible_assignees(user: User, granted: Iterable[str]) -> set[str] | None:
    """Assignees whose tasks ``user`` may see, or None for no restriction.

    Global admins are unrestricted. A user with no grants at all is also
    unrestricted: the filter only applies once at least one grant exists.
    Once it does, the caller's own email is always added to the granted
    set, so tasks assigned to them stay visible.
    """
    if user.is_admin:
        return None
    allowed = set(granted)
    if not allowed:
        return None
    allowed.add(user.email)
    return allowed


def _role_rank(membership: Membership) -> int:
    if membership.is_owner:
        return 0
    if membership.admin_flag is AdminFlag.ADMIN:
        return 1
    return 2


class AuthzResolver:
    """Loads memberships and grants for authorization decisions."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def memberships(self, user_id: uuid.UUID) -> list[Membership]:
        """All memberships of ``user_id``, default tenant first."""
        stmt = (
            select(Membership)
            .where(Membership.user_id == user_id)
            .order_by(Membership.created_at.asc(), Membership.id.asc())  # type: ignore[union-attr]
        )
        result = await self.session.execute(stmt)
        rows = list(result.scalars().all())
        # Stable sort keeps join order within each role
        return sorted(rows, key=_role_rank)

    async def tenant_ids(self, user_id: uuid.UUID) -> list[uuid.UUID]:
        return [m.tenant_id for m in await self.memberships(user_id)]

    async def find_membership(
        self, user_id: uuid.UUID, tenant_id: uuid.UUID,
    ) -> Membership | None:
        stmt = select(Membership).where(
            Membership.user_id == user_id,
            Membership.tenant_id == tenant_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def resolve_membership(
        self,
        user_id: uuid.UUID,
        tenant_id: uuid.UUID | None = None,
    ) -> Membership:
        """Membership of ``tenant_id``, or the caller's default tenant when omitted."""
        if tenant_id is not None:
            membership = await self.find_membership(user_id, tenant_id)
            if membership is None:
                log_security_event(
                    logger, "not_a_member", user_id=user_id, tenant_id=tenant_id,
                )
                raise NotAMember()
            return membership

        memberships = await self.memberships(user_id)
        if not memberships:
            raise NotAMember("User is not a member of any organization")
        default = memberships[0]
        if len(memberships) > 1:
            logger.debug(
                "Implicit tenant %s chosen for user %s (%d memberships)",
                default.tenant_id, user_id, len(memberships),
            )
        return default

    async def owned_tenant_count(self, user_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Membership).where(
            Membership.user_id == user_id,
            Membership.is_owner.is_(True),  # type: ignore[union-attr]
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def granted_assignees(self, user_id: uuid.UUID) -> list[str]:
        stmt = select(TaskPermission.assignee).where(TaskPermission.user_id == user_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
