from __future__ import annotations

import logging
from collections.abc import Mapping

from prpilot_core.errors import SynthesisFailed
from prpilot_core.prompts import SUGGESTION_SYSTEM_PROMPT, build_suggestion_prompt
from prpilot_core.providers.base import BaseProvider

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 16384


def synthesize_suggestions(
    provider: BaseProvider,
    files: Mapping[str, str],
    review_text: str,
    temperature: float = DEFAULT_TEMPERATURE,
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> str:
    """Ask the model to rewrite ``files`` according to ``review_text``; return its raw answer."""
    prompt = build_suggestion_prompt(files, review_text)
    logger.info("Requesting suggestions for %d file(s) (%d prompt chars).", len(files), len(prompt))

    raw = provider.generate(
        prompt,
        system=SUGGESTION_SYSTEM_PROMPT,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    if not raw or not raw.strip():
        raise SynthesisFailed()
    return raw
