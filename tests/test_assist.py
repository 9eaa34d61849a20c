"""Tests for the AI assist endpoints. LiteLLM is mocked throughout."""

import json
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from bizdash.services import assistant
from conftest import auth_headers, mock_llm_response


@pytest.mark.asyncio
async def test_generate_prompt(client: AsyncClient, make_user):
    user = await make_user("me@example.com")
    reply = json.dumps({
        "title": "Friendly follow-up",
        "description": "Nudges a client who went quiet",
        "prompt": "Open warmly, restate the last open question, keep it short.",
    })
    mock_llm = AsyncMock(return_value=mock_llm_response(reply))

    with patch("bizdash.services.llm.acompletion", mock_llm):
        resp = await client.post(
            "/v1/assist/generate-prompt",
            json={"text": "follow up with quiet clients", "type": "response"},
            headers=auth_headers(user),
        )

    assert resp.status_code == 200, resp.text
    assert resp.json()["title"] == "Friendly follow-up"
    system = mock_llm.call_args.kwargs["messages"][0]["content"]
    assert "how to respond to an email" in system
    assert mock_llm.call_args.kwargs["response_format"] == {"type": "json_object"}


@pytest.mark.asyncio
async def test_edit_prompt_sends_current_prompt(client: AsyncClient, make_user):
    user = await make_user("me@example.com")
    reply = json.dumps({"title": "Shorter", "description": "d", "prompt": "Be brief."})
    mock_llm = AsyncMock(return_value=mock_llm_response(reply))

    with patch("bizdash.services.llm.acompletion", mock_llm):
        resp = await client.post(
            "/v1/assist/edit-prompt",
            json={
                "current_prompt": {"title": "Long", "prompt": "Be thorough."},
                "instruction": "make it shorter",
                "type": "rewrite",
            },
            headers=auth_headers(user),
        )

    assert resp.status_code == 200
    assert resp.json()["prompt"] == "Be brief."
    user_message = mock_llm.call_args.kwargs["messages"][1]["content"]
    assert "Title: Long" in user_message
    assert "Description: No description" in user_message
    assert "Instruction: make it shorter" in user_message


@pytest.mark.asyncio
async def test_generate_email_and_summaries(client: AsyncClient, make_user):
    user = await make_user("me@example.com")
    headers = auth_headers(user)

    with patch(
        "bizdash.services.llm.acompletion",
        AsyncMock(return_value=mock_llm_response("Dear Sam, ...")),
    ):
        resp = await client.post(
            "/v1/assist/generate-email",
            json={"text": "Sam asked for a quote", "prompt": "Reply formally"},
            headers=headers,
        )
    assert resp.json() == {"content": "Dear Sam, ..."}

    with patch(
        "bizdash.services.llm.acompletion",
        AsyncMock(return_value=mock_llm_response("Quarterly Inventory Review")),
    ) as mock_llm:
        resp = await client.post(
            "/v1/assist/summarize-title", json={"text": "count boxes"}, headers=headers,
        )
    assert resp.json() == {"summary": "Quarterly Inventory Review"}
    assert mock_llm.call_args.kwargs["max_tokens"] == assistant.TITLE_MAX_TOKENS


@pytest.mark.asyncio
async def test_chat_prepends_system_message(client: AsyncClient, make_user):
    user = await make_user("me@example.com")
    mock_llm = AsyncMock(return_value=mock_llm_response("Sure."))

    with patch("bizdash.services.llm.acompletion", mock_llm):
        resp = await client.post(
            "/v1/assist/chat",
            json={
                "messages": [{"role": "user", "content": "Can you help?"}],
                "system_message": "You help with task notes.",
            },
            headers=auth_headers(user),
        )

    assert resp.status_code == 200
    messages = mock_llm.call_args.kwargs["messages"]
    assert messages[0] == {"role": "system", "content": "You help with task notes."}
    assert messages[1] == {"role": "user", "content": "Can you help?"}


@pytest.mark.asyncio
async def test_llm_failure_is_bad_gateway(client: AsyncClient, make_user):
    user = await make_user("me@example.com")
    with patch(
        "bizdash.services.llm.acompletion", AsyncMock(side_effect=RuntimeError("quota")),
    ):
        resp = await client.post(
            "/v1/assist/summarize", json={"text": "notes"}, headers=auth_headers(user),
        )
    assert resp.status_code == 502


@pytest.mark.asyncio
async def test_assist_requires_authentication(client: AsyncClient):
    resp = await client.post("/v1/assist/summarize", json={"text": "notes"})
    assert resp.status_code == 401


# ── Task drafts ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_generate_task_limits_assignees_to_members(
    client: AsyncClient, make_user, make_tenant, add_member,
):
    owner = await make_user("owner@example.com", full_name="Olive Owner")
    member = await make_user("member@example.com")
    tenant = await make_tenant(owner)
    await add_member(member, tenant)

    reply = json.dumps({
        "title": "Restock shelves",
        "body": "Restock aisle 4",
        "assignee": "Somebody Else",
        "priority": "High",
        "status": "incomplete",
    })
    mock_llm = AsyncMock(return_value=mock_llm_response(reply))
    with patch("bizdash.services.llm.acompletion", mock_llm):
        resp = await client.post(
            "/v1/assist/generate-task",
            json={"description": "restock aisle 4 asap", "tenant_id": str(tenant.id)},
            headers=auth_headers(owner),
        )

    assert resp.status_code == 200, resp.text
    draft = resp.json()
    assert draft["assignee"] == "incomplete"
    assert draft["due"] == "incomplete"
    assert draft["missing_fields"] == ["assignee", "status", "due"]

    system = mock_llm.call_args.kwargs["messages"][0]["content"]
    assert "Olive Owner" in system
    assert "member@example.com" in system


@pytest.mark.asyncio
async def test_generate_task_requires_membership(client: AsyncClient, make_user, make_tenant):
    owner = await make_user("owner@example.com")
    stranger = await make_user("stranger@example.com")
    tenant = await make_tenant(owner)

    resp = await client.post(
        "/v1/assist/generate-task",
        json={"description": "anything", "tenant_id": str(tenant.id)},
        headers=auth_headers(stranger),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_generate_task_keeps_known_assignee():
    reply = json.dumps({
        "title": "Call bank",
        "body": "Ask about the loan",
        "assignee": "Olive Owner",
        "priority": "Low",
        "status": "To Do",
        "due": "2026-11-01",
    })
    with patch(
        "bizdash.services.llm.acompletion", AsyncMock(return_value=mock_llm_response(reply)),
    ):
        draft = await assistant.generate_task("call the bank", ["Olive Owner"])

    assert draft["assignee"] == "Olive Owner"
    assert draft["missing_fields"] == []
