"""AI assistance endpoints — prompt drafting, email writing, task drafts."""

import uuid
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel, Field
from sqlmodel import select

from bizdash.api.deps import Authz, Caller, Session
from bizdash.models.membership import Membership
from bizdash.models.prompt import PromptType
from bizdash.models.user import User
from bizdash.services import assistant
from bizdash.services.authz import Action, authorize, require

router = APIRouter(prefix="/assist", tags=["assist"])


# ── Schemas ──────────────────────────────────────────────────

class GeneratePromptRequest(BaseModel):
    text: str = Field(min_length=1)
    type: PromptType


class CurrentPrompt(BaseModel):
    title: str
    description: str | None = None
    prompt: str


class EditPromptRequest(BaseModel):
    current_prompt: CurrentPrompt
    instruction: str = Field(min_length=1)
    type: PromptType


class PromptDraft(BaseModel):
    title: str
    description: str
    prompt: str


class GenerateEmailRequest(BaseModel):
    text: str = Field(min_length=1)
    prompt: str = Field(min_length=1)


class TextRequest(BaseModel):
    text: str = Field(min_length=1)


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: list[ChatTurn] = Field(min_length=1)
    system_message: str = Field(min_length=1)


class GenerateTaskRequest(BaseModel):
    description: str = Field(min_length=1)
    tenant_id: uuid.UUID


class TaskDraft(BaseModel):
    title: str
    body: str
    assignee: str
    priority: str
    status: str
    due: str
    missing_fields: list[str]


class ContentResponse(BaseModel):
    content: str


class SummaryResponse(BaseModel):
    summary: str


# ── Routes ───────────────────────────────────────────────────

@router.post("/generate-prompt", response_model=PromptDraft)
async def generate_prompt(body: GeneratePromptRequest, user: Caller) -> PromptDraft:
    return PromptDraft(**await assistant.generate_prompt(body.text, body.type))


@router.post("/edit-prompt", response_model=PromptDraft)
async def edit_prompt(body: EditPromptRequest, user: Caller) -> PromptDraft:
    draft = await assistant.edit_prompt(
        title=body.current_prompt.title,
        description=body.current_prompt.description,
        prompt=body.current_prompt.prompt,
        instruction=body.instruction,
        prompt_type=body.type,
    )
    return PromptDraft(**draft)


@router.post("/generate-email", response_model=ContentResponse)
async def generate_email(body: GenerateEmailRequest, user: Caller) -> ContentResponse:
    return ContentResponse(content=await assistant.generate_email(body.text, body.prompt))


@router.post("/summarize", response_model=SummaryResponse)
async def summarize(body: TextRequest, user: Caller) -> SummaryResponse:
    return SummaryResponse(summary=await assistant.summarize(body.text))


@router.post("/summarize-title", response_model=SummaryResponse)
async def summarize_title(body: TextRequest, user: Caller) -> SummaryResponse:
    return SummaryResponse(summary=await assistant.summarize_title(body.text))


@router.post("/chat", response_model=ContentResponse)
async def chat(body: ChatRequest, user: Caller) -> ContentResponse:
    messages = [turn.model_dump() for turn in body.messages]
    return ContentResponse(content=await assistant.chat(messages, body.system_message))


@router.post("/generate-task", response_model=TaskDraft)
async def generate_task(
    body: GenerateTaskRequest, user: Caller, authz: Authz, session: Session,
) -> TaskDraft:
    """Draft a task; assignees are limited to the tenant's members."""
    membership = await authz.resolve_membership(user.id, body.tenant_id)
    require(authorize(membership, Action.CREATE_TASK))

    result = await session.execute(
        select(User)
        .join(Membership, Membership.user_id == User.id)
        .where(Membership.tenant_id == body.tenant_id)
    )
    assignees = [u.full_name or u.email for u in result.scalars().all()]
    return TaskDraft(**await assistant.generate_task(body.description, assignees))
