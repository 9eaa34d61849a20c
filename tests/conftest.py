"""Shared test fixtures — async SQLite in-memory DB + test client."""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from collections.abc import AsyncGenerator  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

# Import all models so metadata is populated
import bizdash.models  # noqa: E402,F401
from bizdash.core.database import get_session  # noqa: E402
from bizdash.core.security import create_jwt, hash_password, hash_pin  # noqa: E402
from bizdash.main import app  # noqa: E402
from bizdash.models.membership import Membership  # noqa: E402
from bizdash.models.tenant import Tenant  # noqa: E402
from bizdash.models.user import User  # noqa: E402

TEST_PASSWORD = "password1234"


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def test_session_factory(engine):
    """Session factory bound to the test SQLite engine."""
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(test_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as sess:
        yield sess
        await sess.rollback()


@pytest.fixture
async def client(session) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client with DB session override."""

    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Factories ────────────────────────────────────────────────

def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_jwt(subject=str(user.id))}"}


@pytest.fixture
def make_user(session):
    async def _make(email: str, *, is_admin: bool = False, full_name: str = "") -> User:
        user = User(
            email=email,
            password_hash=hash_password(TEST_PASSWORD),
            full_name=full_name,
            is_admin=is_admin,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_tenant(session):
    async def _make(owner: User, name: str = "Acme", pin: str = "1234") -> Tenant:
        tenant = Tenant(name=name, pin_hash=hash_pin(pin))
        session.add(tenant)
        await session.commit()
        await session.refresh(tenant)
        session.add(Membership(user_id=owner.id, tenant_id=tenant.id, is_owner=True))
        await session.commit()
        return tenant

    return _make


@pytest.fixture
def add_member(session):
    async def _add(
        user: User, tenant: Tenant, *, is_owner: bool = False, is_admin: bool | None = None,
    ) -> Membership:
        membership = Membership(
            user_id=user.id, tenant_id=tenant.id, is_owner=is_owner, is_admin=is_admin,
        )
        session.add(membership)
        await session.commit()
        await session.refresh(membership)
        return membership

    return _add


def mock_llm_response(content: str) -> MagicMock:
    """Create a mock LiteLLM acompletion response."""
    message = MagicMock()
    message.content = content

    choice = MagicMock()
    choice.message = message

    resp = MagicMock()
    resp.choices = [choice]
    return resp
