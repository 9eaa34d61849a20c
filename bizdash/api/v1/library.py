"""Resource library — browse global templates, import them into a tenant."""

import uuid
from collections import defaultdict

from fastapi import APIRouter, status
from pydantic import BaseModel
from sqlmodel import select

from bizdash.api.deps import Authz, Caller, Session
from bizdash.models.category import CategoryTemplate, CategoryTemplateRead
from bizdash.models.library import (
    LibraryImport,
    ResourceTemplate,
    ResourceTemplateRead,
    TenantResourceTemplate,
)
from bizdash.models.membership import MembershipRead
from bizdash.models.resource import Resource, ResourceRead
from bizdash.services.authz import Action, authorize, require
from bizdash.services.library import import_template
from bizdash.services.tenants import describe_memberships

router = APIRouter(prefix="/resource-library", tags=["resource-library"])


class LibraryListing(BaseModel):
    templates: list[ResourceTemplateRead]
    categories: list[CategoryTemplateRead]
    memberships: list[MembershipRead]
    # tenant id -> ids of templates already imported there
    imported: dict[uuid.UUID, list[uuid.UUID]]


@router.get("", response_model=LibraryListing)
async def list_library(user: Caller, authz: Authz, session: Session) -> LibraryListing:
    memberships = await authz.memberships(user.id)

    categories = list(
        (await session.execute(
            select(CategoryTemplate).order_by(CategoryTemplate.sort_order, CategoryTemplate.name)
        )).scalars().all()
    )
    by_id = {c.id: CategoryTemplateRead.model_validate(c) for c in categories}

    templates = (
        await session.execute(select(ResourceTemplate).order_by(ResourceTemplate.title))
    ).scalars().all()

    imported: dict[uuid.UUID, list[uuid.UUID]] = defaultdict(list)
    tenant_ids = [m.tenant_id for m in memberships]
    if tenant_ids:
        links = await session.execute(
            select(TenantResourceTemplate).where(
                TenantResourceTemplate.tenant_id.in_(tenant_ids)  # type: ignore[attr-defined]
            )
        )
        for link in links.scalars().all():
            imported[link.tenant_id].append(link.template_id)

    return LibraryListing(
        templates=[
            ResourceTemplateRead(
                id=t.id,
                title=t.title,
                url=t.url,
                description=t.description,
                image_url=t.image_url,
                icon=t.icon,
                category=by_id.get(t.category_template_id) if t.category_template_id else None,
            )
            for t in templates
        ],
        categories=list(by_id.values()),
        memberships=await describe_memberships(session, memberships),
        imported=dict(imported),
    )


@router.post("/add", response_model=ResourceRead, status_code=status.HTTP_201_CREATED)
async def add_from_library(
    body: LibraryImport, user: Caller, authz: Authz, session: Session,
) -> Resource:
    membership = await authz.resolve_membership(user.id, body.tenant_id)
    require(authorize(membership, Action.CREATE_RESOURCE))
    return await import_template(
        session,
        template_id=body.template_id,
        tenant_id=membership.tenant_id,
        created_by=user.id,
        override=body.resource,
    )
