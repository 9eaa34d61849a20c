"""Tenant provisioning and teardown."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from bizdash.core.errors import DashboardError
from bizdash.core.security import hash_pin
from bizdash.models.category import Category
from bizdash.models.library import TenantResourceTemplate
from bizdash.models.membership import Membership, MembershipRead
from bizdash.models.prompt import EmailPrompt
from bizdash.models.resource import Resource
from bizdash.models.task import Comment, Task
from bizdash.models.tenant import Tenant

logger = logging.getLogger(__name__)


class MembershipSetupFailed(DashboardError):
    default_detail = "Failed to setup organization membership"


async def _insert_owner_membership(
    session: AsyncSession, user_id: uuid.UUID, tenant_id: uuid.UUID,
) -> Membership:
    membership = Membership(user_id=user_id, tenant_id=tenant_id, is_owner=True)
    session.add(membership)
    await session.commit()
    return membership


async def create_tenant_with_owner(
    session: AsyncSession, *, owner_id: uuid.UUID, name: str, pin: str,
) -> Tenant:
    """Insert a tenant, then the owner's membership.

    Two commits. If the membership commit fails the tenant row is deleted
    so no ownerless tenant is left behind.
    """
    tenant = Tenant(name=name.strip(), pin_hash=hash_pin(pin))
    session.add(tenant)
    await session.commit()
    await session.refresh(tenant)
    tenant_id = tenant.id

    try:
        await _insert_owner_membership(session, owner_id, tenant_id)
    except Exception as exc:
        await session.rollback()
        logger.error("Owner membership for tenant %s failed: %s", tenant_id, exc)
        await session.execute(delete(Tenant).where(Tenant.id == tenant_id))
        await session.commit()
        logger.warning("Removed tenant %s after failed membership setup", tenant_id)
        raise MembershipSetupFailed() from exc

    await session.refresh(tenant)
    logger.info("Tenant %s created (owner=%s)", tenant_id, owner_id)
    return tenant


async def delete_tenant(session: AsyncSession, tenant_id: uuid.UUID) -> None:
    """Delete a tenant and every row scoped to it."""
    task_ids = select(Task.id).where(Task.tenant_id == tenant_id)
    await session.execute(delete(Comment).where(Comment.task_id.in_(task_ids)))  # type: ignore[union-attr]
    await session.execute(delete(Comment).where(Comment.tenant_id == tenant_id))
    await session.execute(delete(Task).where(Task.tenant_id == tenant_id))
    await session.execute(
        delete(TenantResourceTemplate).where(TenantResourceTemplate.tenant_id == tenant_id)
    )
    await session.execute(delete(Resource).where(Resource.tenant_id == tenant_id))
    await session.execute(delete(Category).where(Category.tenant_id == tenant_id))
    await session.execute(delete(EmailPrompt).where(EmailPrompt.tenant_id == tenant_id))
    await session.execute(delete(Membership).where(Membership.tenant_id == tenant_id))
    await session.execute(delete(Tenant).where(Tenant.id == tenant_id))
    await session.commit()
    logger.info("Tenant %s deleted", tenant_id)


async def describe_memberships(
    session: AsyncSession, memberships: list[Membership],
) -> list[MembershipRead]:
    """Membership rows joined with their tenant names, order preserved."""
    if not memberships:
        return []
    result = await session.execute(
        select(Tenant).where(Tenant.id.in_([m.tenant_id for m in memberships]))  # type: ignore[attr-defined]
    )
    names = {t.id: t.name for t in result.scalars().all()}
    return [
        MembershipRead(
            tenant_id=m.tenant_id,
            tenant_name=names.get(m.tenant_id, ""),
            is_owner=m.is_owner,
            is_admin=m.is_admin,
        )
        for m in memberships
    ]
