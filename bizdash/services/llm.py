"""Thin wrapper around LiteLLM for the one-shot completions the app makes."""

from __future__ import annotations

import json
import logging

from litellm import acompletion

from bizdash.core.config import get_settings
from bizdash.core.errors import UpstreamError

logger = logging.getLogger(__name__)


async def complete(
    messages: list[dict],
    max_tokens: int,
    *,
    want_json: bool = False,
    model: str | None = None,
    temperature: float = 0.7,
) -> str:
    """Run one completion and return the assistant text.

    Any provider failure or an empty reply becomes ``UpstreamError``.
    """
    kwargs: dict = {
        "model": model or get_settings().default_llm_model,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if want_json:
        kwargs["response_format"] = {"type": "json_object"}

    try:
        response = await acompletion(**kwargs)
    except Exception as exc:
        logger.warning("LLM completion failed (model=%s): %s", kwargs["model"], exc)
        raise UpstreamError("LLM request failed") from exc

    content = (response.choices[0].message.content or "").strip()
    if not content:
        raise UpstreamError("LLM returned an empty response")
    return content


async def complete_json(
    messages: list[dict],
    max_tokens: int,
    *,
    model: str | None = None,
    temperature: float = 0.7,
) -> dict:
    """JSON-mode completion parsed into a dict."""
    content = await complete(
        messages, max_tokens, want_json=True, model=model, temperature=temperature,
    )
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as exc:
        logger.warning("LLM returned invalid JSON: %.200s", content)
        raise UpstreamError("LLM returned invalid JSON") from exc
    if not isinstance(parsed, dict):
        raise UpstreamError("LLM returned invalid JSON")
    return parsed
