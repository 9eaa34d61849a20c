"""Company logo lookup against the configured logo service."""

from __future__ import annotations

import logging

import httpx

from bizdash.core.config import get_settings

logger = logging.getLogger(__name__)


def candidate_domains(domain: str) -> list[str]:
    """Domains to try, in order: as given, ``www.``-prefixed, last two labels."""
    domain = domain.strip().lower().rstrip(".")
    if not domain:
        return []
    candidates = [domain, f"www.{domain}", ".".join(domain.split(".")[-2:])]
    seen: set[str] = set()
    ordered: list[str] = []
    for candidate in candidates:
        if candidate not in seen:
            seen.add(candidate)
            ordered.append(candidate)
    return ordered


def logo_url(domain: str) -> str:
    return f"{get_settings().logo_service_url.rstrip('/')}/{domain}"


async def find_logo(domain: str) -> str | None:
    """Return the first logo URL the service answers with 2xx, else None.

    A miss is never an error; callers carry on without an image.
    """
    settings = get_settings()
    try:
        async with httpx.AsyncClient(
            timeout=settings.http_timeout_seconds, follow_redirects=True,
        ) as client:
            for candidate in candidate_domains(domain):
                url = logo_url(candidate)
                try:
                    resp = await client.get(url)
                except httpx.HTTPError as exc:
                    logger.debug("Logo lookup failed for %s: %s", url, exc)
                    continue
                if resp.is_success:
                    return url
                logger.debug("Logo lookup for %s returned %d", url, resp.status_code)
    except httpx.HTTPError as exc:
        logger.debug("Logo lookup aborted for %s: %s", domain, exc)
    return None
