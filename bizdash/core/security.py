"""Security utilities: password / PIN hashing and JWT helpers."""

import secrets
from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from bizdash.core.config import get_settings

settings = get_settings()

# ── Password / PIN hashing (Argon2) ──────────────────────────

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def hash_pin(pin: str) -> str:
    """Tenant PINs are stored the same way as passwords."""
    return pwd_context.hash(pin)


def verify_pin(pin: str | None, hashed: str | None) -> bool:
    """Exact PIN check. A missing PIN or an unset hash never matches."""
    if not pin or not hashed:
        return False
    return pwd_context.verify(pin, hashed)


def generate_pin() -> str:
    """Random 4-digit PIN for tenants created without one."""
    return f"{secrets.randbelow(10_000):04d}"


def generate_access_key() -> str:
    """Invite access key, handed to the invitee out of band."""
    return secrets.token_urlsafe(16)


def confirmation_pin_matches(pin: str | None) -> bool:
    """Check the shared soft-confirmation PIN used for resource / task deletes."""
    if pin is None:
        return False
    return secrets.compare_digest(str(pin), settings.confirmation_pin)


# ── JWT ───────────────────────────────────────────────────────

def create_jwt(subject: str, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.jwt_expire_minutes)
    )
    payload = {
        "sub": subject,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jose.JWTError on failure."""
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
