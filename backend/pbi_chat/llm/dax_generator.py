"""DAX query generation using the dynamic schema prompt."""

from __future__ import annotations

import logging
import re
from typing import Callable

from .prompts import DAX_REQUEST

logger = logging.getLogger(__name__)

_FENCED_DAX_RE = re.compile(r"```(?:dax)?\s*(EVALUATE.+?)```", re.IGNORECASE | re.DOTALL)
_BARE_DAX_RE = re.compile(r"(EVALUATE.+)", re.IGNORECASE | re.DOTALL)


def extract_dax(text: str) -> str | None:
    """Extract the DAX query from an LLM reply.

    Prefers a fenced block starting with EVALUATE, then falls back to
    everything from the first EVALUATE. Returns None when there is none.
    """
    if not text:
        return None
    match = _FENCED_DAX_RE.search(text) or _BARE_DAX_RE.search(text)
    if not match:
        return None
    return match.group(1).strip()


def generate_dax(
    question: str,
    system_prompt: str,
    generate: Callable[[str, str], str],
) -> str | None:
    """Ask the model for a DAX query only.

    Args:
        question: User's question
        system_prompt: Compiled schema prompt
        generate: ``generate(system_prompt, user_text) -> text``

    Returns:
        The extracted DAX query, or None if the reply contains none
    """
    logger.info(f"Generating DAX for question: {question[:100]}...")
    reply = generate(system_prompt, DAX_REQUEST.format(question=question))

    dax = extract_dax(reply)
    if dax is None:
        logger.warning(f"No DAX query found in reply: {reply[:200]}...")
        return None

    logger.info(f"Generated DAX length: {len(dax)} chars")
    logger.debug(f"Generated DAX: {dax[:200]}...")
    return dax
