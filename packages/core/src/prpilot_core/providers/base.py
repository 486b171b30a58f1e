"""Base text-generation provider implementing the Template Method pattern.

All providers share the same calling algorithm:
    generate() → _call_with_retry() → _call_api()   ← only this differs per provider

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response

Prompt construction lives in prpilot_core.prompts, so the same provider
serves both the review comment and the suggestion rewrite.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

# Shared defaults; subclasses may override as class attributes if needed.
_MAX_RETRIES = 3
_MAX_TOKENS = 4096
_TEMPERATURE = 0.2


class BaseProvider(ABC):
    MODEL: str = ""
    MAX_RETRIES: int = _MAX_RETRIES
    MAX_TOKENS: int = _MAX_TOKENS
    TEMPERATURE: float = _TEMPERATURE

    def generate(
        self,
        prompt: str,
        system: str = "",
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str | None:
        """Return the model's text for ``prompt``, or None if every attempt failed.

        ``temperature`` and ``max_tokens`` fall back to the class defaults.
        """
        return self._call_with_retry(
            system,
            prompt,
            self.TEMPERATURE if temperature is None else temperature,
            self.MAX_TOKENS if max_tokens is None else max_tokens,
        )

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str, temperature: float, max_tokens: int) -> str:
        """Make a single API call and return the raw text response.

        This is the only method subclasses must implement. It should raise
        on failure; _call_with_retry handles retries and logging.
        """

    def _call_with_retry(self, system_prompt: str, user_prompt: str, temperature: float, max_tokens: int) -> str | None:
        """Retry _call_api up to MAX_RETRIES times with exponential backoff."""
        for attempt in range(self.MAX_RETRIES):
            try:
                return self._call_api(system_prompt, user_prompt, temperature, max_tokens)
            except Exception as e:
                if attempt == self.MAX_RETRIES - 1:
                    logger.error(
                        "%s API failed after %d attempts: %s",
                        self.__class__.__name__,
                        self.MAX_RETRIES,
                        e,
                    )
                    return None
                delay = 2**attempt
                logger.warning(
                    "%s API error (attempt %d/%d): %s. Retrying in %ds...",
                    self.__class__.__name__,
                    attempt + 1,
                    self.MAX_RETRIES,
                    e,
                    delay,
                )
                time.sleep(delay)
        return None
