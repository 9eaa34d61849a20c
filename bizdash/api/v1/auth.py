"""Authentication endpoints — signup, login, current user."""

import logging

from fastapi import APIRouter, status
from pydantic import BaseModel, EmailStr
from sqlalchemy import delete, func
from sqlmodel import select

from bizdash.api.deps import Authz, Caller, Session
from bizdash.core.errors import Conflict, Unauthenticated, Unauthorized, ValidationFailed
from bizdash.core.logging import log_security_event
from bizdash.core.security import create_jwt, generate_pin, hash_password, verify_password
from bizdash.models.invite import Invite
from bizdash.models.membership import MembershipRead
from bizdash.models.tenant import TenantRead, is_valid_pin
from bizdash.models.user import User, UserRead
from bizdash.services.tenants import (
    MembershipSetupFailed,
    create_tenant_with_owner,
    describe_memberships,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 8


# ── Schemas ──────────────────────────────────────────────────

class SignupRequest(BaseModel):
    email: EmailStr
    password: str
    confirm_password: str
    access_key: str | None = None
    full_name: str = ""
    organization_name: str | None = None
    organization_pin: str | None = None


class SignupResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead
    organization: TenantRead
    # Only set when the PIN was generated; shown once
    organization_pin: str | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead


class MeResponse(BaseModel):
    user: UserRead
    memberships: list[MembershipRead]


# ── Routes ───────────────────────────────────────────────────

@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: SignupRequest, session: Session) -> SignupResponse:
    """Create an account and its own organization.

    Every account but the first needs an unused invite for its email. The
    first account of the platform is made a global admin. An invite only
    admits the account; it never adds it to the inviter's organization.
    """
    if len(body.password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    if body.password != body.confirm_password:
        raise ValidationFailed("Passwords do not match")
    if body.organization_pin is not None and not is_valid_pin(body.organization_pin):
        raise ValidationFailed("PIN must be exactly 4 digits")

    email = body.email.lower()
    existing = await session.execute(select(User.id).where(User.email == email))
    if existing.first() is not None:
        raise Conflict("An account with this email already exists")

    user_count = (await session.execute(select(func.count()).select_from(User))).scalar_one()
    is_first_account = user_count == 0

    invite: Invite | None = None
    if not is_first_account:
        if not body.access_key:
            raise ValidationFailed("Invalid invite")
        result = await session.execute(
            select(Invite).where(Invite.email == email, Invite.access_key == body.access_key)
        )
        invite = result.scalars().first()
        if invite is None:
            log_security_event(logger, "invalid_invite", email=email)
            raise ValidationFailed("Invalid invite")
        if invite.used:
            raise Conflict("Invite has already been used")

    user = User(
        email=email,
        password_hash=hash_password(body.password),
        full_name=body.full_name.strip(),
        is_admin=is_first_account,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    user_id = user.id

    generated_pin = None if body.organization_pin else generate_pin()
    try:
        tenant = await create_tenant_with_owner(
            session,
            owner_id=user_id,
            name=(body.organization_name or "").strip() or f"{email}'s Organization",
            pin=body.organization_pin or generated_pin,
        )
    except MembershipSetupFailed:
        # The invite is still unused, so the same account can be retried
        await session.execute(delete(User).where(User.id == user_id))
        await session.commit()
        logger.warning("Removed account %s after failed organization setup", user_id)
        raise

    if invite is not None:
        invite.used = True
        session.add(invite)
        await session.commit()

    logger.info("Account %s created (first=%s)", user.id, is_first_account)
    await session.refresh(user)
    return SignupResponse(
        access_token=create_jwt(subject=str(user.id)),
        user=UserRead.model_validate(user),
        organization=TenantRead.model_validate(tenant),
        organization_pin=generated_pin,
    )


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, session: Session) -> LoginResponse:
    """Authenticate with email + password, receive a JWT."""
    stmt = select(User).where(User.email == body.email.lower())
    result = await session.execute(stmt)
    user = result.scalar_one_or_none()

    if user is None or not verify_password(body.password, user.password_hash):
        log_security_event(logger, "login_failed", email=body.email.lower())
        raise Unauthenticated("Invalid email or password")

    if not user.is_active:
        raise Unauthorized("Account is disabled")

    return LoginResponse(
        access_token=create_jwt(subject=str(user.id)),
        user=UserRead.model_validate(user),
    )


@router.get("/me", response_model=MeResponse)
async def get_me(user: Caller, authz: Authz, session: Session) -> MeResponse:
    """Return the current user and their memberships, default tenant first."""
    memberships = await authz.memberships(user.id)
    return MeResponse(
        user=UserRead.model_validate(user),
        memberships=await describe_memberships(session, memberships),
    )
