"""Email prompt library endpoints."""

import logging
import uuid

from fastapi import APIRouter, status
from sqlmodel import select

from bizdash.api.deps import Authz, Caller, Session
from bizdash.core.errors import NotAMember, NotFound
from bizdash.models.base import utcnow
from bizdash.models.prompt import EmailPrompt, EmailPromptCreate, EmailPromptRead
from bizdash.models.tenant import Tenant
from bizdash.services.authz import Action, authorize, require

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/email-prompts", tags=["email-prompts"])


@router.get("", response_model=list[EmailPromptRead])
async def list_prompts(user: Caller, authz: Authz, session: Session) -> list[EmailPromptRead]:
    """Prompts of every tenant the caller belongs to, newest first."""
    tenant_ids = await authz.tenant_ids(user.id)
    if not tenant_ids:
        raise NotAMember("User is not a member of any organization")

    stmt = (
        select(EmailPrompt, Tenant.name)
        .join(Tenant, Tenant.id == EmailPrompt.tenant_id)
        .where(EmailPrompt.tenant_id.in_(tenant_ids))  # type: ignore[attr-defined]
        .order_by(EmailPrompt.created_at.desc())  # type: ignore[union-attr]
    )
    result = await session.execute(stmt)
    return [_to_read(prompt, tenant_name) for prompt, tenant_name in result.all()]


@router.post("", response_model=EmailPromptRead, status_code=status.HTTP_201_CREATED)
async def create_prompt(
    body: EmailPromptCreate, user: Caller, authz: Authz, session: Session,
) -> EmailPromptRead:
    membership = await authz.resolve_membership(user.id, body.tenant_id)
    require(authorize(membership, Action.CREATE_PROMPT))

    prompt = EmailPrompt(**body.model_dump(), created_by=user.id)
    session.add(prompt)
    await session.commit()
    await session.refresh(prompt)
    return await _read_with_tenant(prompt, session)


@router.put("/{prompt_id}", response_model=EmailPromptRead)
async def update_prompt(
    prompt_id: uuid.UUID,
    body: EmailPromptCreate,
    user: Caller,
    authz: Authz,
    session: Session,
) -> EmailPromptRead:
    await authz.resolve_membership(user.id, body.tenant_id)
    prompt = await _get_or_404(prompt_id, session)
    require(
        authorize(None, Action.EDIT_PROMPT, caller_id=user.id, creator_id=prompt.created_by),
        user_id=user.id,
        prompt_id=prompt_id,
    )

    for field, value in body.model_dump().items():
        setattr(prompt, field, value)
    prompt.updated_at = utcnow()
    session.add(prompt)
    await session.commit()
    await session.refresh(prompt)
    return await _read_with_tenant(prompt, session)


@router.delete("/{prompt_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_prompt(
    prompt_id: uuid.UUID, user: Caller, session: Session,
) -> None:
    prompt = await _get_or_404(prompt_id, session)
    require(
        authorize(None, Action.DELETE_PROMPT, caller_id=user.id, creator_id=prompt.created_by),
        user_id=user.id,
        prompt_id=prompt_id,
    )
    await session.delete(prompt)
    await session.commit()
    logger.info("Prompt %s deleted by %s", prompt_id, user.id)


# ── Internal helpers ─────────────────────────────────────────

async def _get_or_404(prompt_id: uuid.UUID, session) -> EmailPrompt:
    prompt = await session.get(EmailPrompt, prompt_id)
    if prompt is None:
        raise NotFound("Prompt not found")
    return prompt


async def _read_with_tenant(prompt: EmailPrompt, session) -> EmailPromptRead:
    tenant = await session.get(Tenant, prompt.tenant_id)
    return _to_read(prompt, tenant.name if tenant else None)


def _to_read(prompt: EmailPrompt, tenant_name: str | None) -> EmailPromptRead:
    return EmailPromptRead(**prompt.model_dump(), tenant_name=tenant_name)
