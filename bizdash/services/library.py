"""Import of a global resource template into a tenant."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from bizdash.core.errors import Conflict, NotFound
from bizdash.models.category import Category, CategoryTemplate
from bizdash.models.library import ResourceOverride, ResourceTemplate, TenantResourceTemplate
from bizdash.models.resource import Resource

logger = logging.getLogger(__name__)


async def materialize_category(
    session: AsyncSession, tenant_id: uuid.UUID, template: CategoryTemplate,
) -> Category:
    """Tenant category named like ``template``, created on first use."""
    result = await session.execute(
        select(Category).where(
            Category.tenant_id == tenant_id,
            Category.name == template.name,
        )
    )
    existing = result.scalars().first()
    if existing is not None:
        return existing

    category = Category(
        tenant_id=tenant_id,
        name=template.name,
        description=template.description,
        image_url=template.image_url,
    )
    session.add(category)
    await session.commit()
    await session.refresh(category)
    logger.info("Category '%s' created in tenant %s from template", category.name, tenant_id)
    return category


async def _insert_link(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    template_id: uuid.UUID,
    resource_id: uuid.UUID,
) -> TenantResourceTemplate:
    link = TenantResourceTemplate(
        tenant_id=tenant_id, template_id=template_id, resource_id=resource_id,
    )
    session.add(link)
    await session.commit()
    return link


async def remove_orphan_resource(session: AsyncSession, resource_id: uuid.UUID) -> None:
    """Delete a resource whose link insert failed. Safe to call twice."""
    await session.execute(delete(Resource).where(Resource.id == resource_id))
    await session.commit()
    logger.warning("Removed resource %s after failed template link", resource_id)


async def import_template(
    session: AsyncSession,
    *,
    template_id: uuid.UUID,
    tenant_id: uuid.UUID,
    created_by: uuid.UUID,
    override: ResourceOverride | None = None,
) -> Resource:
    """Copy a template into ``tenant_id`` as a resource and record the link.

    The resource and link are two commits. If the link commit fails the
    resource is deleted again before the error propagates.
    """
    template = await session.get(ResourceTemplate, template_id)
    if template is None:
        raise NotFound("Template not found")

    result = await session.execute(
        select(TenantResourceTemplate.id).where(
            TenantResourceTemplate.tenant_id == tenant_id,
            TenantResourceTemplate.template_id == template_id,
        )
    )
    if result.first() is not None:
        raise Conflict("Template already added to this organization")

    category_id: uuid.UUID | None = None
    if template.category_template_id is not None:
        category_template = await session.get(CategoryTemplate, template.category_template_id)
        if category_template is None:
            raise NotFound("Template category not found")
        category = await materialize_category(session, tenant_id, category_template)
        category_id = category.id

    fields = override.model_dump(exclude_none=True) if override else {}
    resource = Resource(
        tenant_id=tenant_id,
        category_id=category_id,
        title=fields.get("title", template.title),
        url=fields.get("url", template.url),
        description=fields.get("description", template.description),
        image_url=fields.get("image_url", template.image_url),
        icon=fields.get("icon", template.icon),
        created_by=created_by,
    )
    session.add(resource)
    await session.commit()
    await session.refresh(resource)
    resource_id = resource.id

    try:
        await _insert_link(session, tenant_id, template_id, resource_id)
    except Exception as exc:
        await session.rollback()
        logger.warning(
            "Linking template %s to tenant %s failed: %s", template_id, tenant_id, exc,
        )
        await remove_orphan_resource(session, resource_id)
        if isinstance(exc, IntegrityError):
            raise Conflict("Template already added to this organization") from exc
        raise

    await session.refresh(resource)
    logger.info("Template %s imported into tenant %s as %s", template_id, tenant_id, resource_id)
    return resource
