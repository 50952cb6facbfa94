from __future__ import annotations

import logging

from pydantic import ValidationError

from jobfill.db.store import KeyValueStore
from jobfill.fields.canonical import UNKNOWN, CanonicalKey
from jobfill.types import AnswerSet, CachedResolution

logger = logging.getLogger(__name__)

# Cached resolutions strictly above this confidence are used without re-resolving.
TRUST_THRESHOLD = 0.7


def dynamic_confidence(base_confidence: float, success_count: int, failure_count: int) -> float:
    confidence = base_confidence * (1 + success_count * 0.05) * (1 - failure_count * 0.1)
    return max(0.5, min(1.0, confidence))


class ResolutionCache:
    """Label text -> canonical key knowledge base, shared across jobs and sites.

    Labels are keyed by their exact text as read from the page.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def get(self, label: str) -> CachedResolution | None:
        raw = self.store.get(label)
        if raw is None:
            return None
        try:
            return CachedResolution.model_validate({**raw, "label": label})
        except ValidationError:
            logger.warning("Discarding malformed label cache entry for %r", label)
            return None

    def get_trusted(self, label: str) -> CachedResolution | None:
        entry = self.get(label)
        if entry is None or entry.key == UNKNOWN or entry.confidence <= TRUST_THRESHOLD:
            return None
        return entry

    def put(self, label: str, key: CanonicalKey, confidence: float) -> bool:
        """Upsert a resolution. Returns False when the write was refused."""
        if key == UNKNOWN:
            logger.debug("Refusing to cache unknown resolution for %r", label)
            return False

        existing = self.get(label)
        if existing is not None and existing.confidence > confidence:
            return False

        entry = CachedResolution(
            label=label,
            key=key,
            confidence=confidence,
            locator=existing.locator if existing else "",
            success_count=existing.success_count if existing else 0,
            failure_count=existing.failure_count if existing else 0,
        )
        self.store.put(label, entry.model_dump(exclude={"label"}))
        return True

    def record_success(self, label: str, locator: str) -> None:
        entry = self.get(label)
        if entry is None:
            return
        updated = entry.model_copy(update={"locator": locator, "success_count": entry.success_count + 1})
        self.store.put(label, updated.model_dump(exclude={"label"}))

    def record_failure(self, label: str) -> None:
        entry = self.get(label)
        if entry is None or not entry.locator:
            return
        updated = entry.model_copy(update={"failure_count": entry.failure_count + 1})
        self.store.put(label, updated.model_dump(exclude={"label"}))

    def all(self) -> list[CachedResolution]:
        entries: list[CachedResolution] = []
        for label, raw in self.store.items():
            try:
                entries.append(CachedResolution.model_validate({**raw, "label": label}))
            except ValidationError:
                logger.warning("Skipping malformed label cache entry for %r", label)
        return entries

    def clear(self) -> int:
        return self.store.clear()


class AnswerCache:
    """Finalized answer sets keyed by job identity."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def get(self, job_id: str) -> AnswerSet | None:
        raw = self.store.get(job_id)
        if raw is None:
            return None
        try:
            return AnswerSet.model_validate(raw)
        except ValidationError:
            logger.warning("Discarding malformed cached answers for job %s", job_id)
            return None

    def put(self, job_id: str, answer_set: AnswerSet) -> None:
        self.store.put(job_id, answer_set.model_dump())

    def clear(self, job_id: str | None = None) -> int:
        if job_id is None:
            return self.store.clear()
        return int(self.store.delete(job_id))
