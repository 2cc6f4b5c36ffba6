from __future__ import annotations

import logging

from aidjobs.config import Settings, get_settings
from aidjobs.errors import GenerationError
from aidjobs.llm.providers import LLMProvider, ProviderPool, is_retryable_error

logger = logging.getLogger(__name__)


class LLMRouter:
    """Client for the external text-generation service.

    One ``complete`` is one logical generation call. Provider selection
    (primary, then fallback when the primary is unavailable) is part of the
    service; it never re-sends a prompt after a non-retryable error.
    """

    def __init__(self, settings: Settings | None = None, pool: ProviderPool | None = None):
        self.settings = settings or get_settings()
        self.pool = pool or ProviderPool(self.settings)

    def complete(
        self,
        *,
        system: str,
        prompt: str,
        task: str = "writer",
        temperature: float | None = None,
    ) -> str:
        temperature = self.settings.generation_temperature if temperature is None else temperature
        errors: list[str] = []

        for provider in self._providers_for(task):
            if not self._is_enabled(provider):
                continue
            try:
                response = provider.complete_text(
                    system=system,
                    prompt=prompt,
                    temperature=temperature,
                    max_tokens=self.settings.generation_max_tokens,
                )
            except Exception as exc:
                logger.warning("LLM call failed provider=%s error=%s", provider.config.name, exc)
                errors.append(f"{provider.config.name}: {exc}")
                if not is_retryable_error(exc):
                    break
                continue

            text = response.content.strip()
            if len(text) < self.settings.generation_min_chars:
                raise GenerationError("Generated job description is too short or empty")
            logger.info("LLM call succeeded provider=%s chars=%s", provider.config.name, len(text))
            return text

        if not errors:
            raise GenerationError("No text-generation provider is configured")
        raise GenerationError(
            "All AI models are currently unavailable: " + "; ".join(errors),
            user_message="All AI models are currently unavailable. Please try again in a few minutes.",
        )

    def _providers_for(self, task: str) -> list[LLMProvider]:
        provider_name = {
            "writer": self.settings.llm_router_writer_provider,
        }.get(task, self.settings.llm_router_default)

        if provider_name == "local":
            return [self.pool.local(), self.pool.openai()]
        return [self.pool.openai(), self.pool.local()]

    def _is_enabled(self, provider: LLMProvider) -> bool:
        if provider.config.name == "openai":
            return bool(self.settings.openai_api_key)
        if provider.config.name == "local":
            return self.settings.local_llm_enabled
        return True
