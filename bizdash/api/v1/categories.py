"""Resource category endpoints."""

import logging
import uuid

from fastapi import APIRouter, Query, status
from sqlalchemy import update
from sqlmodel import select

from bizdash.api.deps import Authz, Caller, Session
from bizdash.core.errors import NotFound
from bizdash.models.base import utcnow
from bizdash.models.category import Category, CategoryCreate, CategoryRead, CategoryUpdate
from bizdash.models.resource import Resource
from bizdash.models.user import User
from bizdash.services.authz import Action, AuthzResolver, authorize, require

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resources/categories", tags=["categories"])


@router.get("", response_model=list[CategoryRead])
async def list_categories(
    user: Caller,
    authz: Authz,
    session: Session,
    tenant_id: uuid.UUID | None = Query(default=None),
) -> list[Category]:
    membership = await authz.resolve_membership(user.id, tenant_id)
    require(authorize(membership, Action.VIEW_RESOURCES))
    result = await session.execute(
        select(Category)
        .where(Category.tenant_id == membership.tenant_id)
        .order_by(Category.name)
    )
    return list(result.scalars().all())


@router.post("", response_model=CategoryRead, status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CategoryCreate, user: Caller, authz: Authz, session: Session,
) -> Category:
    """Create a category, or return the tenant's existing one of that name."""
    membership = await authz.resolve_membership(user.id, body.tenant_id)
    require(authorize(membership, Action.CREATE_CATEGORY))

    name = body.name.strip()
    result = await session.execute(
        select(Category).where(
            Category.tenant_id == membership.tenant_id,
            Category.name == name,
        )
    )
    existing = result.scalars().first()
    if existing is not None:
        return existing

    category = Category(
        tenant_id=membership.tenant_id,
        name=name,
        description=body.description,
        image_url=body.image_url,
    )
    session.add(category)
    await session.commit()
    await session.refresh(category)
    return category


@router.put("/{category_id}", response_model=CategoryRead)
async def update_category(
    category_id: uuid.UUID,
    body: CategoryUpdate,
    user: Caller,
    authz: Authz,
    session: Session,
) -> Category:
    category = await _get_authorized(category_id, user, authz, session, Action.EDIT_CATEGORY)

    for field, value in body.model_dump(exclude_unset=True).items():
        if field == "name" and value is None:
            continue
        setattr(category, field, value.strip() if field == "name" else value)
    category.updated_at = utcnow()

    session.add(category)
    await session.commit()
    await session.refresh(category)
    return category


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: uuid.UUID, user: Caller, authz: Authz, session: Session,
) -> None:
    """Delete a category. Its resources stay, uncategorized."""
    category = await _get_authorized(category_id, user, authz, session, Action.DELETE_CATEGORY)

    await session.execute(
        update(Resource)
        .where(Resource.category_id == category.id)
        .values(category_id=None)
    )
    await session.delete(category)
    await session.commit()
    logger.info("Category %s deleted from tenant %s", category_id, category.tenant_id)


# ── Internal helper ───────────────────────────────────────────

async def _get_authorized(
    category_id: uuid.UUID,
    user: User,
    authz: AuthzResolver,
    session,
    action: Action,
) -> Category:
    category = await session.get(Category, category_id)
    if category is None:
        raise NotFound("Category not found")
    membership = await authz.find_membership(user.id, category.tenant_id)
    if membership is None:
        # Outside the caller's tenants the category does not exist for them
        raise NotFound("Category not found")
    require(authorize(membership, action), user_id=user.id, tenant_id=category.tenant_id)
    return category
