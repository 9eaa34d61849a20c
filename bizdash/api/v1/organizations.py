"""Organization (tenant) management and membership endpoints."""

import logging
import uuid

from fastapi import APIRouter, status
from pydantic import BaseModel
from sqlmodel import select

from bizdash.api.deps import Authz, Caller, Session
from bizdash.core.errors import Conflict, NotFound, Unauthorized, ValidationFailed
from bizdash.core.logging import log_security_event
from bizdash.core.security import verify_pin
from bizdash.models.base import utcnow
from bizdash.models.membership import MemberAdd, MemberRead, Membership, MembershipRead, RoleUpdate
from bizdash.models.tenant import Tenant, TenantCreate, TenantRead, is_valid_pin
from bizdash.models.user import User
from bizdash.services.authz import Action, authorize, authorize_tenant_deletion, require
from bizdash.services.tenants import (
    create_tenant_with_owner,
    delete_tenant,
    describe_memberships,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations", tags=["organizations"])


# ── Schemas ──────────────────────────────────────────────────

class TenantDelete(BaseModel):
    confirm_name: str
    pin: str


class PinCheck(BaseModel):
    tenant_id: uuid.UUID
    pin: str


# ── Organizations ────────────────────────────────────────────

@router.post("", response_model=TenantRead, status_code=status.HTTP_201_CREATED)
async def create_organization(body: TenantCreate, user: Caller, session: Session) -> Tenant:
    if not is_valid_pin(body.pin):
        raise ValidationFailed("PIN must be exactly 4 digits")
    if not body.name.strip():
        raise ValidationFailed("Organization name is required")
    return await create_tenant_with_owner(
        session, owner_id=user.id, name=body.name, pin=body.pin,
    )


@router.get("", response_model=list[MembershipRead])
async def list_organizations(user: Caller, authz: Authz, session: Session) -> list[MembershipRead]:
    memberships = await authz.memberships(user.id)
    return await describe_memberships(session, memberships)


@router.post("/verify-pin")
async def verify_organization_pin(body: PinCheck, user: Caller, authz: Authz, session: Session) -> dict:
    await authz.resolve_membership(user.id, body.tenant_id)
    tenant = await _get_tenant_or_404(body.tenant_id, session)
    if not verify_pin(body.pin, tenant.pin_hash):
        log_security_event(logger, "pin_mismatch", user_id=user.id, tenant_id=tenant.id)
        raise Unauthorized("Invalid PIN")
    return {"verified": True}


@router.delete("/{tenant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_organization(
    tenant_id: uuid.UUID,
    body: TenantDelete,
    user: Caller,
    authz: Authz,
    session: Session,
) -> None:
    tenant = await _get_tenant_or_404(tenant_id, session)
    membership = await authz.find_membership(user.id, tenant_id)
    decision = authorize_tenant_deletion(
        membership,
        tenant,
        confirm_name=body.confirm_name,
        pin=body.pin,
        owned_tenant_count=await authz.owned_tenant_count(user.id),
    )
    require(decision, user_id=user.id, tenant_id=tenant_id)
    await delete_tenant(session, tenant_id)


# ── Members ──────────────────────────────────────────────────

@router.get("/{tenant_id}/members", response_model=list[MemberRead])
async def list_members(
    tenant_id: uuid.UUID, user: Caller, authz: Authz, session: Session,
) -> list[MemberRead]:
    membership = await authz.resolve_membership(user.id, tenant_id)
    require(authorize(membership, Action.VIEW_MEMBERS))

    stmt = (
        select(Membership, User)
        .join(User, User.id == Membership.user_id)
        .where(Membership.tenant_id == tenant_id)
        .order_by(Membership.created_at.asc())  # type: ignore[union-attr]
    )
    result = await session.execute(stmt)
    return [_to_member_read(m, u) for m, u in result.all()]


@router.post(
    "/{tenant_id}/members",
    response_model=MemberRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_member(
    tenant_id: uuid.UUID, body: MemberAdd, user: Caller, authz: Authz, session: Session,
) -> MemberRead:
    membership = await authz.resolve_membership(user.id, tenant_id)
    require(authorize(membership, Action.MANAGE_MEMBERS), user_id=user.id, tenant_id=tenant_id)

    result = await session.execute(select(User).where(User.email == body.email.strip().lower()))
    member_user = result.scalar_one_or_none()
    if member_user is None:
        raise NotFound("User not found")
    if await authz.find_membership(member_user.id, tenant_id) is not None:
        raise Conflict("User is already a member of this organization")

    new_membership = Membership(user_id=member_user.id, tenant_id=tenant_id)
    session.add(new_membership)
    await session.commit()
    await session.refresh(new_membership)
    logger.info("User %s added to tenant %s by %s", member_user.id, tenant_id, user.id)
    return _to_member_read(new_membership, member_user)


@router.put("/{tenant_id}/members/{member_id}/role", response_model=MemberRead)
async def update_member_role(
    tenant_id: uuid.UUID,
    member_id: uuid.UUID,
    body: RoleUpdate,
    user: Caller,
    authz: Authz,
    session: Session,
) -> MemberRead:
    membership = await authz.resolve_membership(user.id, tenant_id)
    require(authorize(membership, Action.MANAGE_MEMBERS), user_id=user.id, tenant_id=tenant_id)

    target = await _get_member_or_404(tenant_id, member_id, authz)
    # Owners may change their own flag too; nothing guards the last admin
    target.is_admin = body.is_admin
    target.updated_at = utcnow()
    session.add(target)
    await session.commit()
    await session.refresh(target)

    member_user = await session.get(User, member_id)
    return _to_member_read(target, member_user)


@router.delete("/{tenant_id}/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    tenant_id: uuid.UUID,
    member_id: uuid.UUID,
    user: Caller,
    authz: Authz,
    session: Session,
) -> None:
    membership = await authz.resolve_membership(user.id, tenant_id)
    require(authorize(membership, Action.MANAGE_MEMBERS), user_id=user.id, tenant_id=tenant_id)

    target = await _get_member_or_404(tenant_id, member_id, authz)
    if target.is_owner:
        raise Unauthorized("Cannot remove an owner from the organization")
    await session.delete(target)
    await session.commit()
    logger.info("User %s removed from tenant %s by %s", member_id, tenant_id, user.id)


# ── Internal helpers ─────────────────────────────────────────

async def _get_tenant_or_404(tenant_id: uuid.UUID, session) -> Tenant:
    tenant = await session.get(Tenant, tenant_id)
    if tenant is None:
        raise NotFound("Organization not found")
    return tenant


async def _get_member_or_404(tenant_id: uuid.UUID, member_id: uuid.UUID, authz) -> Membership:
    target = await authz.find_membership(member_id, tenant_id)
    if target is None:
        raise NotFound("Member not found")
    return target


def _to_member_read(membership: Membership, user: User | None) -> MemberRead:
    return MemberRead(
        user_id=membership.user_id,
        email=user.email if user else "",
        full_name=user.full_name if user else "",
        is_owner=membership.is_owner,
        is_admin=membership.is_admin,
    )
