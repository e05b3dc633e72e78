"""Anthropic Messages API client for LLM interactions."""

from __future__ import annotations

import json
import logging

import httpx

from ..core.config import get_settings
from ..core.exceptions import LLMError

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"

__all__ = ["LLMError", "call_claude"]


def call_claude(
    system: str,
    user_text: str,
    model: str | None = None,
    max_tokens: int | None = None,
) -> str:
    """Send one user turn with a system prompt and return the reply text.

    Args:
        system: System prompt (the compiled schema prompt)
        user_text: User message content
        model: Model to use (defaults to settings.claude_model)
        max_tokens: Maximum tokens in response (defaults to settings.claude_max_tokens)
    """
    settings = get_settings()
    effective_model = model or settings.claude_model
    payload = {
        "model": effective_model,
        "max_tokens": max_tokens or settings.claude_max_tokens,
        "system": system,
        "messages": [{"role": "user", "content": user_text}],
    }
    headers = {
        "x-api-key": settings.anthropic_api_key,
        "anthropic-version": ANTHROPIC_VERSION,
        "content-type": "application/json",
    }

    logger.debug(f"Calling Claude with model={effective_model}, system prompt {len(system)} chars")

    try:
        response = httpx.post(
            f"{settings.anthropic_base_url}/v1/messages",
            json=payload,
            headers=headers,
            timeout=settings.request_timeout,
        )
        response.raise_for_status()
    except httpx.TimeoutException as e:
        logger.error(f"Claude request timed out after {settings.request_timeout}s")
        raise LLMError(f"LLM request timed out after {settings.request_timeout}s") from e
    except httpx.HTTPStatusError as e:
        logger.error(f"Claude HTTP error: {e.response.status_code} - {e.response.text[:200]}")
        raise LLMError(f"LLM request failed with status {e.response.status_code}") from e
    except httpx.HTTPError as e:
        logger.error(f"Claude request failed: {e}")
        raise LLMError(f"LLM request failed: {e}") from e

    try:
        data = response.json()
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse Claude response as JSON: {response.text[:200]}")
        raise LLMError("LLM returned invalid JSON") from e

    if not isinstance(data, dict):
        logger.error(f"Unexpected response type: {type(data)}")
        raise LLMError("LLM response is not a dictionary")

    content = data.get("content")
    if not content or not isinstance(content, list):
        logger.error(f"Missing or invalid 'content' in response: {data}")
        raise LLMError("LLM response missing 'content' array")

    text_blocks = [
        block.get("text", "")
        for block in content
        if isinstance(block, dict) and block.get("type", "text") == "text"
    ]
    if not text_blocks:
        logger.error(f"No text block in response content: {content}")
        raise LLMError("LLM response missing text content")

    text = "".join(text_blocks)
    logger.debug(f"Claude response length: {len(text)} chars")
    return text
