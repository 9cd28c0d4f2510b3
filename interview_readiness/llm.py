"""Thin wrapper around the OpenAI chat API used for scoring and report prose."""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from openai import OpenAI, OpenAIError

from .config import Settings

logger = structlog.get_logger(__name__)


class CompletionError(Exception):
    """The text-generation service could not produce a response."""


class LLMUnavailableError(CompletionError):
    """No provider is configured (missing API key)."""


class LLMRequestError(CompletionError):
    """The provider was reachable in principle but the request failed."""


class OpenAICompleter:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._client: Optional[OpenAI] = None

    @property
    def configured(self) -> bool:
        return bool(self.settings.openai_api_key)

    def _client_openai(self) -> OpenAI:
        if self._client is None:
            if not self.configured:
                raise LLMUnavailableError("OPENAI_API_KEY not set; use .env or set MOCK_MODE=1")
            self._client = OpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.request_timeout,
                max_retries=self.settings.max_retries,
            )
        return self._client

    def complete(self, prompt: str, temperature: float = 0.2, max_tokens: int = 500) -> str:
        client = self._client_openai()
        try:
            resp = client.chat.completions.create(
                model=self.settings.model,
                messages=[{"role": "system", "content": prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            logger.warning("Completion request failed", model=self.settings.model, error=str(e))
            raise LLMRequestError(str(e)) from e
        if not resp.choices:
            raise LLMRequestError("Completion returned no choices")
        return resp.choices[0].message.content or ""

    def status(self) -> Dict[str, Any]:
        return {
            "configured": self.configured,
            "model": self.settings.model,
            "offline_mode": self.settings.offline_mode,
        }
