"""Generative model client used by the classifier and the analyzer."""

from __future__ import annotations

import logging
from typing import Protocol

import openai
from openai import OpenAI

from legalmitra.config import AnalyzerConfig
from legalmitra.errors import AnalysisError, AnalysisErrorKind, ConfigurationError

logger = logging.getLogger(__name__)

__all__ = ["ModelClient", "OpenAIModelClient"]


class ModelClient(Protocol):
    """Anything that turns a prompt into free-form text."""

    model_name: str

    def generate(self, prompt: str, *, system: str | None = None) -> str:
        ...


class OpenAIModelClient:
    """Thin wrapper over the OpenAI chat completions API.

    Provider failures are translated into :class:`~legalmitra.errors.AnalysisError`
    so callers never depend on SDK exception types.
    """

    def __init__(self, client: OpenAI, *, model: str, temperature: float = 0.3) -> None:
        self._client = client
        self.model_name = model
        self._temperature = temperature

    @classmethod
    def from_config(cls, config: AnalyzerConfig) -> "OpenAIModelClient":
        if not config.has_credentials:
            raise ConfigurationError("OpenAI API key is not configured")
        # The SDK retries transient failures by default; the pipeline does not.
        client = OpenAI(api_key=config.api_key, timeout=60.0, max_retries=0)
        return cls(client, model=config.model, temperature=config.temperature)

    def generate(self, prompt: str, *, system: str | None = None) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            response = self._client.chat.completions.create(
                model=self.model_name,
                messages=messages,
                temperature=self._temperature,
            )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            logger.error("Model call rejected credentials: %s", exc)
            raise AnalysisError(AnalysisErrorKind.UNAUTHORIZED) from exc
        except openai.RateLimitError as exc:
            logger.warning("Model call rate limited: %s", exc)
            raise AnalysisError(AnalysisErrorKind.RATE_LIMITED) from exc
        except openai.OpenAIError as exc:
            logger.error("Model call failed: %s", exc)
            raise AnalysisError(AnalysisErrorKind.MODEL_UNAVAILABLE) from exc

        if not response.choices:
            raise AnalysisError(
                AnalysisErrorKind.UNPARSEABLE_RESPONSE, details="The AI response contained no choices"
            )
        # Filtered completions come back with empty content; the normalizer degrades those.
        return (response.choices[0].message.content or "").strip()
