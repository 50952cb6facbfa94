from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from openai import OpenAI

from jobfill.config import Settings
from jobfill.types import ModelResponse

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


@dataclass(slots=True)
class ProviderConfig:
    name: str
    base_url: str
    api_key: str
    timeout_sec: int


def responses_unsupported(exc: Exception) -> bool:
    """True when ``exc`` says the endpoint has no Responses API (Ollama, older proxies)."""
    if getattr(exc, "status_code", None) == 404:
        return True
    message = str(exc).lower()
    return "404" in message or "not found" in message


def _raw_record(response: Any, api_path: str) -> dict[str, Any]:
    dumped = response.model_dump() if hasattr(response, "model_dump") else {}
    record = dumped if isinstance(dumped, dict) else {"raw": dumped}
    record["api_path"] = api_path
    return record


class LLMProvider:
    """One OpenAI-compatible endpoint.

    Calls go through the Responses API first and drop to chat.completions
    when the endpoint does not implement it. Any other error propagates.
    """

    def __init__(self, config: ProviderConfig):
        self.config = config
        self.client = OpenAI(base_url=config.base_url, api_key=config.api_key, timeout=float(config.timeout_sec))

    def complete_text(self, *, model: str, prompt: str) -> ModelResponse:
        try:
            response = self.client.responses.create(
                model=model,
                input=[{"role": "user", "content": [{"type": "input_text", "text": prompt}]}],
            )
        except Exception as exc:
            if not responses_unsupported(exc):
                raise
            logger.warning(
                "Responses API unavailable for provider=%s base_url=%s; using chat.completions (%s)",
                self.config.name,
                self.config.base_url,
                exc,
            )
            return self._complete_chat(model=model, prompt=prompt)

        return ModelResponse(
            content=getattr(response, "output_text", "") or "",
            provider=self.config.name,
            raw=_raw_record(response, "responses"),
        )

    def complete_json(self, *, model: str, prompt: str) -> dict[str, Any] | list[Any] | None:
        return parse_json_payload(self.complete_text(model=model, prompt=prompt).content)

    def _complete_chat(self, *, model: str, prompt: str) -> ModelResponse:
        response = self.client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
        )
        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None)
        return ModelResponse(
            content="" if content is None else str(content),
            provider=self.config.name,
            raw=_raw_record(response, "chat_completions"),
        )


def parse_json_payload(content: str) -> dict[str, Any] | list[Any] | None:
    """Decode a model reply that should be a JSON object or array.

    Code fences and prose around the payload are tolerated. Returns None when
    nothing decodable is found.
    """
    candidate = content.strip()
    if not candidate:
        return None

    fenced = _FENCE.search(candidate)
    if fenced:
        candidate = fenced.group(1).strip()

    for attempt in (candidate, _outermost(candidate, "{", "}"), _outermost(candidate, "[", "]")):
        if not attempt:
            continue
        try:
            value = json.loads(attempt)
        except json.JSONDecodeError:
            continue
        if isinstance(value, (dict, list)):
            return value

    logger.warning("Failed to parse JSON model output")
    return None


def _outermost(text: str, opening: str, closing: str) -> str:
    start = text.find(opening)
    end = text.rfind(closing)
    if start == -1 or end <= start:
        return ""
    return text[start : end + 1]


class ProviderPool:
    """Lazily built providers, one per configured endpoint name."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._providers: dict[str, LLMProvider] = {}

    def openai(self) -> LLMProvider:
        return self._get("openai")

    def local(self) -> LLMProvider:
        return self._get("local")

    def _get(self, name: str) -> LLMProvider:
        if name not in self._providers:
            self._providers[name] = LLMProvider(self._config_for(name))
        return self._providers[name]

    def _config_for(self, name: str) -> ProviderConfig:
        if name == "local":
            return ProviderConfig(
                name=name,
                base_url=self.settings.local_llm_base_url,
                api_key=self.settings.local_llm_api_key,
                timeout_sec=self.settings.local_llm_timeout_sec,
            )
        return ProviderConfig(
            name=name,
            base_url=self.settings.openai_base_url,
            api_key=self.settings.openai_api_key,
            timeout_sec=self.settings.openai_timeout_sec,
        )
