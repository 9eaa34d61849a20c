"""Resource endpoints — CRUD plus AI suggestion and logo lookup."""

import logging
import uuid

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import delete
from sqlmodel import select

from bizdash.api.deps import Authz, Caller, Session
from bizdash.core.errors import NotFound, Unauthorized, ValidationFailed
from bizdash.core.logging import log_security_event
from bizdash.core.security import confirmation_pin_matches
from bizdash.models.base import utcnow
from bizdash.models.category import Category, CategoryRead
from bizdash.models.library import TenantResourceTemplate
from bizdash.models.resource import Resource, ResourceCreate, ResourceRead, ResourceUpdate
from bizdash.models.user import User
from bizdash.services import enrichment
from bizdash.services.authz import Action, AuthzResolver, authorize, require

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resources", tags=["resources"])


# ── Schemas ──────────────────────────────────────────────────

class ResourceList(BaseModel):
    resources: list[ResourceRead]
    categories: list[CategoryRead]


class ResourceDelete(BaseModel):
    pin: str


class SuggestRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    company_name: str = Field(alias="companyName", min_length=1, max_length=255)
    tenant_id: uuid.UUID | None = None


class SuggestResponse(BaseModel):
    title: str
    description: str
    url: str
    image_url: str | None
    suggested_category: str | None
    category_id: uuid.UUID | None
    tenant_id: uuid.UUID


class LogoRequest(BaseModel):
    url: str


class LogoResponse(BaseModel):
    image_url: str


# ── Routes ───────────────────────────────────────────────────

@router.get("", response_model=ResourceList)
async def list_resources(
    user: Caller,
    authz: Authz,
    session: Session,
    tenant_id: uuid.UUID | None = Query(default=None),
) -> ResourceList:
    membership = await authz.resolve_membership(user.id, tenant_id)
    require(authorize(membership, Action.VIEW_RESOURCES))

    resources = await session.execute(
        select(Resource)
        .where(Resource.tenant_id == membership.tenant_id)
        .order_by(Resource.created_at.desc())  # type: ignore[union-attr]
    )
    categories = await session.execute(
        select(Category)
        .where(Category.tenant_id == membership.tenant_id)
        .order_by(Category.name)
    )
    return ResourceList(
        resources=[ResourceRead.model_validate(r) for r in resources.scalars().all()],
        categories=[CategoryRead.model_validate(c) for c in categories.scalars().all()],
    )


@router.post("", response_model=ResourceRead, status_code=status.HTTP_201_CREATED)
async def create_resource(
    body: ResourceCreate, user: Caller, authz: Authz, session: Session,
) -> Resource:
    membership = await authz.resolve_membership(user.id, body.tenant_id)
    require(authorize(membership, Action.CREATE_RESOURCE))
    if body.category_id is not None:
        await _check_category(body.category_id, membership.tenant_id, session)

    resource = Resource(
        **body.model_dump(exclude={"tenant_id"}),
        tenant_id=membership.tenant_id,
        created_by=user.id,
    )
    session.add(resource)
    await session.commit()
    await session.refresh(resource)
    return resource


@router.post("/suggest", response_model=SuggestResponse)
async def suggest_resource(
    body: SuggestRequest, user: Caller, authz: Authz, session: Session,
) -> SuggestResponse:
    """Draft a resource from a company name. Nothing is saved."""
    membership = await authz.resolve_membership(user.id, body.tenant_id)
    require(authorize(membership, Action.CREATE_RESOURCE))

    suggestion = await enrichment.suggest_resource(
        session, membership.tenant_id, body.company_name,
    )
    return SuggestResponse(
        title=suggestion.title,
        description=suggestion.description,
        url=suggestion.url,
        image_url=suggestion.image_url,
        suggested_category=suggestion.suggested_category,
        category_id=suggestion.category_id,
        tenant_id=suggestion.tenant_id,
    )


@router.post("/find-logo", response_model=LogoResponse)
async def find_logo(body: LogoRequest, user: Caller) -> LogoResponse:
    image_url = await enrichment.logo_for_url(body.url)
    if image_url is None:
        raise NotFound("Logo not found")
    return LogoResponse(image_url=image_url)


@router.put("/{resource_id}", response_model=ResourceRead)
async def update_resource(
    resource_id: uuid.UUID,
    body: ResourceUpdate,
    user: Caller,
    authz: Authz,
    session: Session,
) -> Resource:
    resource = await _get_or_404(resource_id, user, authz, session)
    membership = await authz.find_membership(user.id, resource.tenant_id)
    require(authorize(membership, Action.EDIT_RESOURCE))

    update_data = body.model_dump(exclude_unset=True)
    if update_data.get("category_id") is not None:
        await _check_category(update_data["category_id"], resource.tenant_id, session)
    for field, value in update_data.items():
        if value is None and field in ("title", "url"):
            continue
        setattr(resource, field, value)
    resource.updated_at = utcnow()

    session.add(resource)
    await session.commit()
    await session.refresh(resource)
    return resource


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(
    resource_id: uuid.UUID,
    body: ResourceDelete,
    user: Caller,
    authz: Authz,
    session: Session,
) -> None:
    if not confirmation_pin_matches(body.pin):
        log_security_event(
            logger, "confirmation_pin_mismatch", user_id=user.id, resource_id=resource_id,
        )
        raise Unauthorized("Invalid PIN")
    resource = await _get_or_404(resource_id, user, authz, session)

    await session.execute(
        delete(TenantResourceTemplate).where(TenantResourceTemplate.resource_id == resource.id)
    )
    await session.delete(resource)
    await session.commit()
    logger.info("Resource %s deleted by %s", resource_id, user.id)


# ── Internal helpers ─────────────────────────────────────────

async def _get_or_404(
    resource_id: uuid.UUID, user: User, authz: AuthzResolver, session,
) -> Resource:
    stmt = select(Resource).where(
        Resource.id == resource_id,
        Resource.tenant_id.in_(await authz.tenant_ids(user.id)),  # type: ignore[attr-defined]
    )
    result = await session.execute(stmt)
    resource = result.scalar_one_or_none()
    if resource is None:
        raise NotFound("Resource not found")
    return resource


async def _check_category(category_id: uuid.UUID, tenant_id: uuid.UUID, session) -> None:
    category = await session.get(Category, category_id)
    if category is None or category.tenant_id != tenant_id:
        raise ValidationFailed("Category does not belong to this organization")
