"""Resource enrichment pipeline.

Turns a bare company name (or URL) into a resource draft:

  1. Resolve the canonical URL (LLM, skipped when given a URL)
  2. Extract the bare domain
  3. Look up a logo, trying domain variants (a miss is not an error)
  4. Scrape title / description from the page
  5. LLM cleanup: short business name, one-line description, category pick
  6. Match the picked category against the tenant's existing ones

Failures raise ``EnrichmentError`` naming the stage. Nothing is retried.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from urllib.parse import urlsplit

import httpx
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from bizdash.core.config import get_settings
from bizdash.core.errors import EnrichmentError, InvalidURL, UpstreamError
from bizdash.models.category import Category
from bizdash.services import llm
from bizdash.services.logos import find_logo
from bizdash.services.page_meta import extract_page_meta

logger = logging.getLogger(__name__)

URL_SYSTEM_PROMPT = (
    "You are a helpful assistant that provides official website URLs for "
    "companies. Return only the URL, nothing else."
)

CLEANUP_SYSTEM_PROMPT = (
    "You are a helpful assistant that simplifies business resource information "
    "and categorizes them. You must try to use existing categories first before "
    "suggesting new ones."
)

CLEANUP_USER_TEMPLATE = """Please simplify this resource information and categorize it.
Raw Title: {title}
Raw Description: {description}
Available Categories: {categories}

Requirements:
1. Title should be just the business name (e.g., "ULINE")
2. Description should be a very brief explanation of what users can do on the site (e.g., "Order warehouse and shipping supplies")
3. For the category:
   - You MUST try to use one of the available categories first
   - Only suggest a new category if the resource ABSOLUTELY cannot fit into any existing category
   - If suggesting a category, use EXACTLY one of the available categories listed above
   - Example: if "Marketing" exists in available categories, use "Marketing", not "Digital Marketing" or "Marketing Tools"

Return in JSON format with:
{{
  "title": "business name",
  "description": "what users can do on the site",
  "suggestedCategory": "MUST use an existing category name if possible"
}}"""

CLEANUP_MAX_TOKENS = 300
URL_MAX_TOKENS = 100


@dataclass
class CleanedResource:
    title: str
    description: str
    suggested_category: str | None


@dataclass
class ResourceSuggestion:
    title: str
    description: str
    url: str
    image_url: str | None
    suggested_category: str | None
    category_id: uuid.UUID | None
    tenant_id: uuid.UUID


def _is_http_url(value: str) -> bool:
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.hostname)


# ── Stages ──────────────────────────────────────────────────

async def resolve_url(company_name: str) -> str:
    """Canonical site URL for a company. Input that is already a URL is kept."""
    candidate = company_name.strip()
    if _is_http_url(candidate):
        return candidate

    try:
        reply = await llm.complete(
            [
                {"role": "system", "content": URL_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": f"What is the official website URL for {candidate}?",
                },
            ],
            URL_MAX_TOKENS,
            model=get_settings().enrichment_llm_model,
        )
    except UpstreamError as exc:
        raise EnrichmentError("resolve_url", "Could not determine URL") from exc

    url = reply.strip()
    if not url:
        raise EnrichmentError("resolve_url", "Could not determine URL")
    return url


def extract_domain(url: str) -> str:
    """Hostname without a leading ``www.``. Raises ``InvalidURL``."""
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
    except ValueError as exc:
        raise InvalidURL() from exc
    if parts.scheme not in ("http", "https") or not hostname:
        raise InvalidURL()
    return hostname.removeprefix("www.")


async def scrape_metadata(url: str, domain: str) -> tuple[str, str]:
    """Raw (title, description) of the page, falling back to (domain, "")."""
    settings = get_settings()
    try:
        async with httpx.AsyncClient(
            timeout=settings.http_timeout_seconds, follow_redirects=True,
        ) as client:
            resp = await client.get(url)
    except httpx.HTTPError as exc:
        logger.warning("Page fetch failed for %s: %s", url, exc)
        raise EnrichmentError("scrape", f"Could not fetch {url}") from exc

    if not resp.is_success:
        # Still parse: error pages usually carry the site's title
        logger.info("Page fetch for %s returned %d", url, resp.status_code)

    meta = extract_page_meta(resp.text)
    return meta.title or domain, meta.description or ""


async def cleanup(
    raw_title: str, raw_description: str, category_names: list[str],
) -> CleanedResource:
    prompt = CLEANUP_USER_TEMPLATE.format(
        title=raw_title,
        description=raw_description,
        categories=", ".join(category_names) or "No categories available",
    )
    try:
        data = await llm.complete_json(
            [
                {"role": "system", "content": CLEANUP_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            CLEANUP_MAX_TOKENS,
            model=get_settings().enrichment_llm_model,
        )
    except UpstreamError as exc:
        raise EnrichmentError(
            "cleanup", "Failed to clean up resource information",
        ) from exc

    suggested = data.get("suggestedCategory")
    return CleanedResource(
        title=str(data.get("title") or raw_title).strip(),
        description=str(data.get("description") or raw_description).strip(),
        suggested_category=str(suggested).strip() if suggested else None,
    )


def reconcile_category(
    suggested: str | None, categories: list[Category],
) -> uuid.UUID | None:
    """Case-insensitive exact match against existing categories. Never creates."""
    if not suggested:
        return None
    wanted = suggested.strip().casefold()
    for category in categories:
        if category.name.strip().casefold() == wanted:
            return category.id
    return None


# ── Entry points ────────────────────────────────────────────

async def logo_for_url(url: str) -> str | None:
    return await find_logo(extract_domain(url))


async def suggest_resource(
    session: AsyncSession, tenant_id: uuid.UUID, company_name: str,
) -> ResourceSuggestion:
    result = await session.execute(
        select(Category).where(Category.tenant_id == tenant_id).order_by(Category.name)
    )
    categories = list(result.scalars().all())

    url = await resolve_url(company_name)
    domain = extract_domain(url)
    image_url = await find_logo(domain)
    raw_title, raw_description = await scrape_metadata(url, domain)
    cleaned = await cleanup(raw_title, raw_description, [c.name for c in categories])
    category_id = reconcile_category(cleaned.suggested_category, categories)

    logger.info(
        "Enriched %r -> %s (category=%s, logo=%s)",
        company_name, url, cleaned.suggested_category, bool(image_url),
    )
    return ResourceSuggestion(
        title=cleaned.title,
        description=cleaned.description,
        url=url,
        image_url=image_url,
        suggested_category=cleaned.suggested_category,
        category_id=category_id,
        tenant_id=tenant_id,
    )
