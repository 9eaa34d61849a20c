"""Tests for organization (tenant) management and membership endpoints."""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from sqlalchemy import func
from sqlmodel import select

from bizdash.models.membership import Membership
from bizdash.models.resource import Resource
from bizdash.models.task import Task
from bizdash.models.tenant import Tenant
from bizdash.services.authz import ONLY_ORGANIZATION_DETAIL
from conftest import auth_headers


async def _tenant_count(session, name: str) -> int:
    stmt = select(func.count()).select_from(Tenant).where(Tenant.name == name)
    return (await session.execute(stmt)).scalar_one()


# ── Create / list ────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_organization_makes_caller_owner(client: AsyncClient, session, make_user):
    user = await make_user("founder@example.com")

    resp = await client.post(
        "/v1/organizations",
        json={"name": "  Second Co  ", "pin": "9876"},
        headers=auth_headers(user),
    )
    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["name"] == "Second Co"
    assert "pin_hash" not in data

    membership = (
        await session.execute(
            select(Membership).where(Membership.tenant_id == uuid.UUID(data["id"]))
        )
    ).scalar_one()
    assert membership.user_id == user.id
    assert membership.is_owner is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "pin", ["123", "12345", "abcd", "12 4", "", "1234\n", "\u0661\u0662\u0663\u0664"],
)
async def test_create_organization_rejects_bad_pin(client: AsyncClient, make_user, pin):
    user = await make_user("founder@example.com")
    resp = await client.post(
        "/v1/organizations", json={"name": "Bad Pin Co", "pin": pin}, headers=auth_headers(user),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "PIN must be exactly 4 digits"


@pytest.mark.asyncio
async def test_failed_owner_membership_removes_tenant(client: AsyncClient, session, make_user):
    user = await make_user("founder@example.com")

    with patch(
        "bizdash.services.tenants._insert_owner_membership",
        AsyncMock(side_effect=RuntimeError("membership insert failed")),
    ):
        resp = await client.post(
            "/v1/organizations",
            json={"name": "Ghost Co", "pin": "1234"},
            headers=auth_headers(user),
        )

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to setup organization membership"
    assert await _tenant_count(session, "Ghost Co") == 0


@pytest.mark.asyncio
async def test_list_organizations_default_first(
    client: AsyncClient, make_user, make_tenant, add_member,
):
    user = await make_user("me@example.com")
    other_owner = await make_user("other@example.com")
    joined = await make_tenant(other_owner, name="Joined Co")
    await add_member(user, joined, is_admin=True)
    await make_tenant(user, name="Mine")

    resp = await client.get("/v1/organizations", headers=auth_headers(user))
    assert resp.status_code == 200
    data = resp.json()
    # Owned tenant ranks ahead of the admin membership, even though joined later
    assert [m["tenant_name"] for m in data] == ["Mine", "Joined Co"]
    assert data[0]["is_owner"] is True
    assert data[1]["is_admin"] is True


@pytest.mark.asyncio
async def test_verify_pin(client: AsyncClient, make_user, make_tenant):
    owner = await make_user("owner@example.com")
    tenant = await make_tenant(owner, pin="4321")

    ok = await client.post(
        "/v1/organizations/verify-pin",
        json={"tenant_id": str(tenant.id), "pin": "4321"},
        headers=auth_headers(owner),
    )
    bad = await client.post(
        "/v1/organizations/verify-pin",
        json={"tenant_id": str(tenant.id), "pin": "0000"},
        headers=auth_headers(owner),
    )
    assert ok.status_code == 200
    assert ok.json() == {"verified": True}
    assert bad.status_code == 403
    assert bad.json()["detail"] == "Invalid PIN"


# ── Delete ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_owner_cannot_delete_only_organization(
    client: AsyncClient, session, make_user, make_tenant,
):
    owner = await make_user("owner@example.com")
    tenant = await make_tenant(owner, name="Acme", pin="1234")

    resp = await client.request(
        "DELETE",
        f"/v1/organizations/{tenant.id}",
        json={"confirm_name": "Acme", "pin": "1234"},
        headers=auth_headers(owner),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == ONLY_ORGANIZATION_DETAIL
    assert await _tenant_count(session, "Acme") == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("confirm_name", "pin", "detail"),
    [
        ("acme", "1234", "Organization name does not match"),
        ("Acme", "9999", "Invalid PIN"),
    ],
)
async def test_delete_organization_requires_name_and_pin(
    client: AsyncClient, session, make_user, make_tenant, confirm_name, pin, detail,
):
    owner = await make_user("owner@example.com")
    tenant = await make_tenant(owner, name="Acme", pin="1234")
    await make_tenant(owner, name="Backup")

    resp = await client.request(
        "DELETE",
        f"/v1/organizations/{tenant.id}",
        json={"confirm_name": confirm_name, "pin": pin},
        headers=auth_headers(owner),
    )
    assert resp.status_code == 403
    assert resp.json()["detail"] == detail
    assert await _tenant_count(session, "Acme") == 1


@pytest.mark.asyncio
async def test_admin_member_cannot_delete_organization(
    client: AsyncClient, make_user, make_tenant, add_member,
):
    owner = await make_user("owner@example.com")
    admin = await make_user("admin@example.com")
    tenant = await make_tenant(owner, name="Acme", pin="1234")
    await add_member(admin, tenant, is_admin=True)
    await make_tenant(admin, name="Admin Own 1")
    await make_tenant(admin, name="Admin Own 2")

    resp = await client.request(
        "DELETE",
        f"/v1/organizations/{tenant.id}",
        json={"confirm_name": "Acme", "pin": "1234"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Only organization owners can delete organizations"


@pytest.mark.asyncio
async def test_delete_organization_removes_scoped_rows(
    client: AsyncClient, session, make_user, make_tenant,
):
    owner = await make_user("owner@example.com")
    doomed = await make_tenant(owner, name="Doomed", pin="1234")
    await make_tenant(owner, name="Keeper")
    doomed_id = doomed.id
    session.add(Task(tenant_id=doomed_id, user_id=owner.id, title="t", body="b", priority="High"))
    session.add(Resource(tenant_id=doomed_id, title="r", url="https://r.example"))
    await session.commit()

    resp = await client.request(
        "DELETE",
        f"/v1/organizations/{doomed_id}",
        json={"confirm_name": "Doomed", "pin": "1234"},
        headers=auth_headers(owner),
    )
    assert resp.status_code == 204

    for model in (Task, Resource, Membership):
        stmt = select(func.count()).select_from(model).where(model.tenant_id == doomed_id)
        assert (await session.execute(stmt)).scalar_one() == 0
    assert await _tenant_count(session, "Doomed") == 0
    assert await _tenant_count(session, "Keeper") == 1


@pytest.mark.asyncio
async def test_delete_unknown_organization(client: AsyncClient, make_user, make_tenant):
    owner = await make_user("owner@example.com")
    await make_tenant(owner)

    resp = await client.request(
        "DELETE",
        "/v1/organizations/00000000-0000-0000-0000-000000000000",
        json={"confirm_name": "x", "pin": "1234"},
        headers=auth_headers(owner),
    )
    assert resp.status_code == 404


# ── Members ──────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_owner_adds_lists_and_removes_member(
    client: AsyncClient, make_user, make_tenant,
):
    owner = await make_user("owner@example.com")
    colleague = await make_user("colleague@example.com", full_name="Cole League")
    tenant = await make_tenant(owner)
    headers = auth_headers(owner)

    resp = await client.post(
        f"/v1/organizations/{tenant.id}/members",
        json={"email": "Colleague@Example.com"},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["full_name"] == "Cole League"
    assert resp.json()["is_admin"] is None

    again = await client.post(
        f"/v1/organizations/{tenant.id}/members",
        json={"email": "colleague@example.com"},
        headers=headers,
    )
    assert again.status_code == 409

    resp = await client.get(f"/v1/organizations/{tenant.id}/members", headers=headers)
    assert [m["email"] for m in resp.json()] == ["owner@example.com", "colleague@example.com"]

    resp = await client.delete(
        f"/v1/organizations/{tenant.id}/members/{colleague.id}", headers=headers,
    )
    assert resp.status_code == 204

    resp = await client.get(f"/v1/organizations/{tenant.id}/members", headers=headers)
    assert len(resp.json()) == 1


@pytest.mark.asyncio
async def test_add_unknown_user_is_404(client: AsyncClient, make_user, make_tenant):
    owner = await make_user("owner@example.com")
    tenant = await make_tenant(owner)

    resp = await client.post(
        f"/v1/organizations/{tenant.id}/members",
        json={"email": "nobody@example.com"},
        headers=auth_headers(owner),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_admin_member_cannot_manage_members(
    client: AsyncClient, make_user, make_tenant, add_member,
):
    owner = await make_user("owner@example.com")
    admin = await make_user("admin@example.com")
    await make_user("new@example.com")
    tenant = await make_tenant(owner)
    await add_member(admin, tenant, is_admin=True)

    resp = await client.post(
        f"/v1/organizations/{tenant.id}/members",
        json={"email": "new@example.com"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Must be an owner to manage members"

    # Viewing is open to any member
    resp = await client.get(f"/v1/organizations/{tenant.id}/members", headers=auth_headers(admin))
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_owner_sets_tri_state_role(client: AsyncClient, make_user, make_tenant, add_member):
    owner = await make_user("owner@example.com")
    member = await make_user("member@example.com")
    tenant = await make_tenant(owner)
    await add_member(member, tenant)
    url = f"/v1/organizations/{tenant.id}/members/{member.id}/role"

    for value in (True, False, None):
        resp = await client.put(url, json={"is_admin": value}, headers=auth_headers(owner))
        assert resp.status_code == 200
        assert resp.json()["is_admin"] is value


@pytest.mark.asyncio
async def test_owner_cannot_be_removed(client: AsyncClient, make_user, make_tenant, add_member):
    owner = await make_user("owner@example.com")
    co_owner = await make_user("coowner@example.com")
    tenant = await make_tenant(owner)
    await add_member(co_owner, tenant, is_owner=True)

    resp = await client.delete(
        f"/v1/organizations/{tenant.id}/members/{co_owner.id}", headers=auth_headers(owner),
    )
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Cannot remove an owner from the organization"


@pytest.mark.asyncio
async def test_non_member_cannot_list_members(client: AsyncClient, make_user, make_tenant):
    owner = await make_user("owner@example.com")
    stranger = await make_user("stranger@example.com")
    tenant = await make_tenant(owner)

    resp = await client.get(
        f"/v1/organizations/{tenant.id}/members", headers=auth_headers(stranger),
    )
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Not a member of this organization"
