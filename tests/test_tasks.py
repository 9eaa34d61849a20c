"""Tests for task CRUD, visibility grants, and comments."""

import pytest
from httpx import AsyncClient

from bizdash.models.task import Task, TaskPermission
from conftest import auth_headers

CONFIRMATION_PIN = "0220"


@pytest.fixture
def make_task(session):
    async def _make(tenant, *, title="Task", assignee="Unassigned", user=None) -> Task:
        task = Task(
            tenant_id=tenant.id,
            user_id=user.id if user else None,
            title=title,
            body="Details",
            priority="Medium",
            assignee=assignee,
        )
        session.add(task)
        await session.commit()
        await session.refresh(task)
        return task

    return _make


@pytest.fixture
def grant(session):
    async def _grant(user, assignee: str) -> None:
        session.add(TaskPermission(user_id=user.id, assignee=assignee))
        await session.commit()

    return _grant


# ── Create / update ──────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_task_defaults(client: AsyncClient, make_user, make_tenant):
    user = await make_user("me@example.com")
    tenant = await make_tenant(user)

    resp = await client.post(
        "/v1/tasks",
        json={"title": "Call supplier", "body": "Ask about lead times", "priority": "High"},
        headers=auth_headers(user),
    )
    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["status"] == "To Do"
    assert data["assignee"] == "Unassigned"
    assert data["archived"] is False
    assert data["tenant_id"] == str(tenant.id)
    assert data["user_id"] == str(user.id)
    assert data["comments"] == []


@pytest.mark.asyncio
async def test_create_task_in_foreign_tenant_denied(client: AsyncClient, make_user, make_tenant):
    owner = await make_user("owner@example.com")
    stranger = await make_user("stranger@example.com")
    tenant = await make_tenant(owner)
    await make_tenant(stranger, name="Other")

    resp = await client.post(
        "/v1/tasks",
        json={"title": "x", "body": "y", "priority": "Low", "tenant_id": str(tenant.id)},
        headers=auth_headers(stranger),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_update_task_maps_completed_to_done(
    client: AsyncClient, make_user, make_tenant, make_task,
):
    user = await make_user("me@example.com")
    tenant = await make_tenant(user)
    task = await make_task(tenant, user=user)

    resp = await client.put(
        f"/v1/tasks/{task.id}",
        json={"status": "Completed", "assignee": "alice@example.com"},
        headers=auth_headers(user),
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "Done"
    assert resp.json()["assignee"] == "alice@example.com"
    assert resp.json()["title"] == "Task"


@pytest.mark.asyncio
async def test_update_task_rejects_unknown_status(
    client: AsyncClient, make_user, make_tenant, make_task,
):
    user = await make_user("me@example.com")
    tenant = await make_tenant(user)
    task = await make_task(tenant)

    resp = await client.put(
        f"/v1/tasks/{task.id}", json={"status": "Someday"}, headers=auth_headers(user),
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_update_task_outside_named_tenant_is_404(
    client: AsyncClient, make_user, make_tenant, make_task,
):
    user = await make_user("me@example.com")
    first = await make_tenant(user, name="First")
    second = await make_tenant(user, name="Second")
    task = await make_task(first)

    resp = await client.put(
        f"/v1/tasks/{task.id}",
        json={"title": "Moved?", "tenant_id": str(second.id)},
        headers=auth_headers(user),
    )
    assert resp.status_code == 404


# ── Visibility ───────────────────────────────────────────────

@pytest.mark.asyncio
async def test_no_grants_sees_every_task_in_tenant(
    client: AsyncClient, make_user, make_tenant, make_task,
):
    user = await make_user("me@example.com")
    tenant = await make_tenant(user)
    await make_task(tenant, title="Mine", assignee="me@example.com")
    await make_task(tenant, title="Theirs", assignee="bob@example.com")

    resp = await client.get("/v1/tasks", headers=auth_headers(user))
    assert resp.status_code == 200
    assert {t["title"] for t in resp.json()} == {"Mine", "Theirs"}


@pytest.mark.asyncio
async def test_grants_restrict_to_granted_plus_own(
    client: AsyncClient, make_user, make_tenant, make_task, grant,
):
    user = await make_user("me@example.com")
    tenant = await make_tenant(user)
    await make_task(tenant, title="Mine", assignee="me@example.com")
    await make_task(tenant, title="Alice's", assignee="alice@example.com")
    await make_task(tenant, title="Bob's", assignee="bob@example.com")
    await make_task(tenant, title="Nobody's", assignee="Unassigned")
    await grant(user, "alice@example.com")

    resp = await client.get("/v1/tasks", headers=auth_headers(user))
    assert {t["title"] for t in resp.json()} == {"Mine", "Alice's"}


@pytest.mark.asyncio
async def test_global_admin_ignores_grants(
    client: AsyncClient, make_user, make_tenant, make_task, grant,
):
    admin = await make_user("admin@example.com", is_admin=True)
    tenant = await make_tenant(admin)
    await make_task(tenant, title="Alice's", assignee="alice@example.com")
    await make_task(tenant, title="Bob's", assignee="bob@example.com")
    await grant(admin, "alice@example.com")

    resp = await client.get("/v1/tasks", headers=auth_headers(admin))
    assert len(resp.json()) == 2


@pytest.mark.asyncio
async def test_tasks_of_other_tenants_never_listed(
    client: AsyncClient, make_user, make_tenant, make_task,
):
    user = await make_user("me@example.com")
    other = await make_user("other@example.com")
    await make_tenant(user)
    foreign = await make_tenant(other, name="Foreign")
    await make_task(foreign, title="Secret")

    resp = await client.get("/v1/tasks", headers=auth_headers(user))
    assert resp.json() == []

    resp = await client.get(
        "/v1/tasks", params={"tenant_id": str(foreign.id)}, headers=auth_headers(user),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_list_spans_all_member_tenants_newest_first(
    client: AsyncClient, make_user, make_tenant, make_task,
):
    user = await make_user("me@example.com")
    first = await make_tenant(user, name="First")
    second = await make_tenant(user, name="Second")
    await make_task(first, title="Older")
    await make_task(second, title="Newer")

    resp = await client.get("/v1/tasks", headers=auth_headers(user))
    assert [t["title"] for t in resp.json()] == ["Newer", "Older"]

    resp = await client.get(
        "/v1/tasks", params={"tenant_id": str(first.id)}, headers=auth_headers(user),
    )
    assert [t["title"] for t in resp.json()] == ["Older"]


# ── Delete / archive ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_delete_task_requires_confirmation_pin(
    client: AsyncClient, make_user, make_tenant, make_task,
):
    user = await make_user("me@example.com")
    tenant = await make_tenant(user)
    task = await make_task(tenant)

    resp = await client.request(
        "DELETE", f"/v1/tasks/{task.id}", json={"pin": "1111"}, headers=auth_headers(user),
    )
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Invalid PIN"

    resp = await client.request(
        "DELETE",
        f"/v1/tasks/{task.id}",
        json={"pin": CONFIRMATION_PIN},
        headers=auth_headers(user),
    )
    assert resp.status_code == 204

    resp = await client.get("/v1/tasks", headers=auth_headers(user))
    assert resp.json() == []


@pytest.mark.asyncio
async def test_archive_and_restore(client: AsyncClient, make_user, make_tenant, make_task):
    user = await make_user("me@example.com")
    tenant = await make_tenant(user)
    task = await make_task(tenant)

    resp = await client.put(
        f"/v1/tasks/{task.id}/archive", json={"archived": True}, headers=auth_headers(user),
    )
    assert resp.status_code == 200
    assert resp.json()["archived"] is True

    resp = await client.put(
        f"/v1/tasks/{task.id}/archive", json={"archived": False}, headers=auth_headers(user),
    )
    assert resp.json()["archived"] is False


# ── Implicit tenant ──────────────────────────────────────────

@pytest.mark.asyncio
async def test_writes_without_tenant_id_use_default_tenant(
    client: AsyncClient, make_user, make_tenant, add_member, make_task,
):
    """Update, delete and comment resolve to the owned tenant, not any membership."""
    me = await make_user("me@example.com")
    other = await make_user("other@example.com")
    await make_tenant(me, name="Mine")
    theirs = await make_tenant(other, name="Theirs")
    await add_member(me, theirs)
    task = await make_task(theirs)
    headers = auth_headers(me)

    resp = await client.put(f"/v1/tasks/{task.id}", json={"title": "x"}, headers=headers)
    assert resp.status_code == 404
    resp = await client.post(
        f"/v1/tasks/{task.id}/comments", json={"text": "hi"}, headers=headers,
    )
    assert resp.status_code == 404
    resp = await client.request(
        "DELETE", f"/v1/tasks/{task.id}", json={"pin": CONFIRMATION_PIN}, headers=headers,
    )
    assert resp.status_code == 404

    scoped = {"tenant_id": str(theirs.id)}
    resp = await client.put(
        f"/v1/tasks/{task.id}", json={"title": "Renamed", **scoped}, headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["title"] == "Renamed"
    resp = await client.post(
        f"/v1/tasks/{task.id}/comments", json={"text": "hi", **scoped}, headers=headers,
    )
    assert resp.status_code == 201
    resp = await client.request(
        "DELETE",
        f"/v1/tasks/{task.id}",
        json={"pin": CONFIRMATION_PIN, **scoped},
        headers=headers,
    )
    assert resp.status_code == 204


# ── Comments ─────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_comments_listed_oldest_first_with_default_author(
    client: AsyncClient, make_user, make_tenant, make_task,
):
    user = await make_user("me@example.com", full_name="Mia Example")
    tenant = await make_tenant(user)
    task = await make_task(tenant)
    headers = auth_headers(user)

    first = await client.post(
        f"/v1/tasks/{task.id}/comments", json={"text": "First"}, headers=headers,
    )
    await client.post(
        f"/v1/tasks/{task.id}/comments",
        json={"text": "Second", "author": "Front desk"},
        headers=headers,
    )
    assert first.status_code == 201
    assert first.json()["author"] == "Mia Example"

    resp = await client.get("/v1/tasks", headers=headers)
    comments = resp.json()[0]["comments"]
    assert [c["text"] for c in comments] == ["First", "Second"]
    assert comments[1]["author"] == "Front desk"


@pytest.mark.asyncio
async def test_comment_on_foreign_task_is_404(
    client: AsyncClient, make_user, make_tenant, make_task,
):
    user = await make_user("me@example.com")
    other = await make_user("other@example.com")
    await make_tenant(user)
    foreign = await make_tenant(other, name="Foreign")
    task = await make_task(foreign)

    resp = await client.post(
        f"/v1/tasks/{task.id}/comments", json={"text": "hi"}, headers=auth_headers(user),
    )
    assert resp.status_code == 404
