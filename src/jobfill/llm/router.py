from __future__ import annotations

import logging
from typing import Any, Protocol

from jobfill.config import Settings, get_settings
from jobfill.errors import GenerationError
from jobfill.llm.prompts import JSON_OUTPUT_SUFFIX, JSON_RETRY_PREFIX
from jobfill.llm.providers import LLMProvider, ProviderPool, parse_json_payload

logger = logging.getLogger(__name__)

TEXT_SHAPE = "text"
MAPPING_SHAPE = "MappingOutput"
WHY_FIT_SHAPE = "WhyFitAnswer"


class TextGenerator(Protocol):
    def generate(self, prompt: str, shape: str = TEXT_SHAPE) -> Any: ...


class LLMRouter:
    """Generative-text collaborator over the OpenAI and local (Ollama) providers.

    ``generate`` returns the reply text for ``shape == "text"`` and the decoded
    JSON object or array for any other shape. It raises ``GenerationError``
    when every configured provider fails or keeps returning undecodable JSON.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.pool = ProviderPool(self.settings)

    def generate(self, prompt: str, shape: str = TEXT_SHAPE) -> Any:
        task = "mapper" if shape == MAPPING_SHAPE else "writer"
        if shape == TEXT_SHAPE:
            return self._call_text(task=task, prompt=prompt)
        return self._call_json(task=task, prompt=prompt + JSON_OUTPUT_SUFFIX.format(shape=shape))

    def _provider_for(self, task: str) -> tuple[LLMProvider, LLMProvider]:
        provider_name = {
            "mapper": self.settings.llm_router_mapper_provider,
            "writer": self.settings.llm_router_writer_provider,
        }.get(task, self.settings.llm_router_default)

        if provider_name == "local":
            return self.pool.local(), self.pool.openai()
        return self.pool.openai(), self.pool.local()

    def _model_for(self, provider: LLMProvider, task: str) -> str:
        if provider.config.name == "local":
            return self.settings.local_llm_model
        if task == "mapper":
            return self.settings.openai_model_mapper
        return self.settings.openai_model_writer

    def _enabled(self, provider: LLMProvider) -> bool:
        if provider.config.name == "openai" and not self.settings.openai_api_key:
            return False
        if provider.config.name == "local" and not self.settings.local_llm_enabled:
            return False
        return True

    def _call_json(self, *, task: str, prompt: str) -> dict[str, Any] | list[Any]:
        attempts = max(0, self.settings.llm_json_retries) + 1
        for provider in self._provider_for(task):
            if not self._enabled(provider):
                continue
            model = self._model_for(provider, task)
            for attempt in range(attempts):
                attempt_prompt = prompt if attempt == 0 else JSON_RETRY_PREFIX + prompt
                try:
                    payload = provider.complete_json(model=model, prompt=attempt_prompt)
                except Exception as exc:
                    logger.warning("LLM JSON call failed provider=%s error=%s", provider.config.name, exc)
                    break
                if payload is not None:
                    return payload
                logger.warning(
                    "LLM returned invalid JSON provider=%s attempt=%d/%d",
                    provider.config.name,
                    attempt + 1,
                    attempts,
                )
        raise GenerationError(f"no provider returned valid JSON for task {task}")

    def _call_text(self, *, task: str, prompt: str) -> str:
        for provider in self._provider_for(task):
            if not self._enabled(provider):
                continue
            try:
                return provider.complete_text(model=self._model_for(provider, task), prompt=prompt).content
            except Exception as exc:
                logger.warning("LLM text call failed provider=%s error=%s", provider.config.name, exc)
        raise GenerationError(f"no provider returned text for task {task}")


def generate_json(generator: TextGenerator, prompt: str, shape: str) -> Any:
    """Call ``generator`` and decode its reply when it hands back raw text."""
    result = generator.generate(prompt, shape)
    if isinstance(result, str):
        return parse_json_payload(result)
    return result
