"""Three-tier field label resolution: heuristics, learned cache, semantic fallback."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from jobfill.core.cache import ResolutionCache
from jobfill.fields.canonical import ANSWERABLE_KEYS, UNKNOWN, CanonicalKey
from jobfill.fields.heuristics import match_label
from jobfill.llm.prompts import LABEL_MAPPING_PROMPT
from jobfill.llm.router import MAPPING_SHAPE, TextGenerator, generate_json
from jobfill.types import LabelMapping, LabelResolution

logger = logging.getLogger(__name__)

# Exactly at the trust threshold, so semantic answers are re-verified on later forms.
SEMANTIC_CONFIDENCE = 0.7


def decode_mappings(payload: Any) -> list[LabelMapping] | None:
    """Decode a mapping reply given either as ``{"mappings": [...]}`` or as a bare list.

    Returns None when neither shape fits. Individual malformed entries are dropped.
    """
    if isinstance(payload, dict):
        items = payload.get("mappings")
        if not isinstance(items, list):
            return None
    elif isinstance(payload, list):
        items = payload
    else:
        return None

    mappings: list[LabelMapping] = []
    for item in items:
        try:
            mappings.append(LabelMapping.model_validate(item))
        except ValidationError:
            logger.debug("Dropping malformed mapping entry %r", item)
    return mappings


class SemanticResolver:
    def __init__(self, generator: TextGenerator):
        self.generator = generator

    def resolve(self, labels: Sequence[str]) -> dict[str, CanonicalKey]:
        """Resolve a batch with one collaborator call; failures resolve the whole batch to unknown."""
        resolved: dict[str, CanonicalKey] = {label: UNKNOWN for label in labels}
        if not resolved:
            return resolved

        prompt = LABEL_MAPPING_PROMPT.format(
            canonical_keys=", ".join(ANSWERABLE_KEYS),
            labels="\n".join(f"{index}. {label}" for index, label in enumerate(resolved, start=1)),
        )
        try:
            payload = generate_json(self.generator, prompt, MAPPING_SHAPE)
        except Exception as exc:
            logger.warning("Semantic resolver unavailable for %d labels: %s", len(resolved), exc)
            return resolved

        mappings = decode_mappings(payload)
        if mappings is None:
            logger.warning("Semantic resolver returned malformed output for %d labels", len(resolved))
            return resolved

        by_folded = {label.strip().casefold(): label for label in resolved}
        for mapping in mappings:
            label = mapping.label if mapping.label in resolved else by_folded.get(mapping.label.strip().casefold())
            if label is None:
                logger.debug("Semantic resolver answered for unrequested label %r", mapping.label)
                continue
            key = mapping.canonical_key
            if key == UNKNOWN and mapping.key.strip().lower() != UNKNOWN:
                logger.warning("Semantic resolver returned non-canonical key %r for %r", mapping.key, label)
            resolved[label] = key
        return resolved


class FieldResolutionEngine:
    def __init__(self, cache: ResolutionCache, semantic: SemanticResolver | None = None):
        self.cache = cache
        self.semantic = semantic

    def resolve_labels(self, labels: Sequence[str]) -> list[LabelResolution]:
        """Resolve every label, in input order, with at most one semantic call."""
        resolved: dict[str, LabelResolution] = {}
        unresolved: list[str] = []

        for label in labels:
            if label in resolved or label in unresolved:
                continue

            if not label.strip():
                resolved[label] = LabelResolution(label=label)
                continue

            match = match_label(label)
            if match is not None:
                key, confidence = match
                resolved[label] = LabelResolution(label=label, key=key, confidence=confidence, source="heuristic")
                self._remember(label, key, confidence)
                continue

            cached = self._trusted(label)
            if cached is not None:
                resolved[label] = LabelResolution(
                    label=label, key=cached.key, confidence=cached.confidence, source="cache"
                )
                continue

            unresolved.append(label)

        if unresolved:
            resolved.update(self._resolve_semantically(unresolved))

        return [resolved[label] for label in labels]

    def record_fill_outcome(self, label: str, locator: str | None) -> None:
        try:
            if locator:
                self.cache.record_success(label, locator)
            else:
                self.cache.record_failure(label)
        except Exception as exc:
            logger.warning("Could not record fill outcome for %r: %s", label, exc)

    def _resolve_semantically(self, labels: list[str]) -> dict[str, LabelResolution]:
        if self.semantic is None:
            logger.info("No semantic resolver configured; %d labels left unknown", len(labels))
            return {label: LabelResolution(label=label) for label in labels}

        results: dict[str, LabelResolution] = {}
        for label, key in self.semantic.resolve(labels).items():
            if key == UNKNOWN:
                results[label] = LabelResolution(label=label)
                continue
            results[label] = LabelResolution(
                label=label, key=key, confidence=SEMANTIC_CONFIDENCE, source="semantic"
            )
            self._remember(label, key, SEMANTIC_CONFIDENCE)
        return results

    def _trusted(self, label: str):
        try:
            return self.cache.get_trusted(label)
        except Exception as exc:
            logger.warning("Label cache lookup failed for %r: %s", label, exc)
            return None

    def _remember(self, label: str, key: CanonicalKey, confidence: float) -> None:
        try:
            self.cache.put(label, key, confidence)
        except Exception as exc:
            logger.warning("Label cache write failed for %r: %s", label, exc)
