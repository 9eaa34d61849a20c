"""FastAPI dependencies for authentication and tenant resolution."""

import logging
import uuid
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from bizdash.core.database import get_session
from bizdash.core.errors import Unauthenticated
from bizdash.core.security import decode_jwt
from bizdash.models.user import User
from bizdash.services.authz import AuthzResolver, authorize_global_admin, require

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is a 401 rather than FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> User:
    """Resolve the bearer JWT to an active user."""
    if credentials is None:
        raise Unauthenticated("Not authenticated")

    try:
        payload = decode_jwt(credentials.credentials)
    except JWTError as exc:
        raise Unauthenticated("Invalid or expired token") from exc

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError, TypeError) as exc:
        raise Unauthenticated("Malformed token payload") from exc

    user = await session.get(User, user_id)
    if user is None or not user.is_active:
        logger.info("Token for missing or disabled user %s rejected", user_id)
        raise Unauthenticated("Account not found or disabled")
    return user


async def get_authz(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> AuthzResolver:
    return AuthzResolver(session)


async def get_global_admin(
    user: Annotated[User, Depends(get_current_user)],
) -> User:
    require(authorize_global_admin(user), user_id=user.id)
    return user


# Typed shorthand for use in route signatures
Caller = Annotated[User, Depends(get_current_user)]
GlobalAdmin = Annotated[User, Depends(get_global_admin)]
Authz = Annotated[AuthzResolver, Depends(get_authz)]
Session = Annotated[AsyncSession, Depends(get_session)]
