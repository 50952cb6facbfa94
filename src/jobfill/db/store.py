from __future__ import annotations

import copy
import logging
from typing import Any, Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobfill.db.models import CacheEntry

logger = logging.getLogger(__name__)

LABEL_MAP_NAMESPACE = "label_map"
ANSWERS_NAMESPACE = "answers"


class KeyValueStore(Protocol):
    def get(self, key: str) -> dict[str, Any] | None: ...

    def put(self, key: str, value: dict[str, Any]) -> None: ...

    def delete(self, key: str) -> bool: ...

    def clear(self) -> int: ...

    def items(self) -> list[tuple[str, dict[str, Any]]]: ...


class InMemoryStore:
    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}

    def get(self, key: str) -> dict[str, Any] | None:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    def put(self, key: str, value: dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def clear(self) -> int:
        removed = len(self._data)
        self._data.clear()
        return removed

    def items(self) -> list[tuple[str, dict[str, Any]]]:
        return [(key, copy.deepcopy(value)) for key, value in self._data.items()]

    def __len__(self) -> int:
        return len(self._data)


class SqlKeyValueStore:
    """Namespaced key-value store persisted in the ``cache_entries`` table.

    Writes are upserts; when two writers race on the same key the last commit wins.
    """

    def __init__(self, session: Session, namespace: str):
        self.session = session
        self.namespace = namespace

    def get(self, key: str) -> dict[str, Any] | None:
        entry = self._entry(key)
        if entry is None:
            return None
        return dict(entry.value_json or {})

    def put(self, key: str, value: dict[str, Any]) -> None:
        entry = self._entry(key)
        if entry is None:
            self.session.add(CacheEntry(namespace=self.namespace, key=key, value_json=dict(value)))
        else:
            entry.value_json = dict(value)

        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.debug("Concurrent insert for %s/%s; retrying as update", self.namespace, key)
            entry = self._entry(key)
            if entry is None:
                raise
            entry.value_json = dict(value)
            self.session.commit()

    def delete(self, key: str) -> bool:
        result = self.session.execute(
            delete(CacheEntry).where(CacheEntry.namespace == self.namespace, CacheEntry.key == key)
        )
        self.session.commit()
        return bool(result.rowcount)

    def clear(self) -> int:
        result = self.session.execute(delete(CacheEntry).where(CacheEntry.namespace == self.namespace))
        self.session.commit()
        return int(result.rowcount or 0)

    def items(self) -> list[tuple[str, dict[str, Any]]]:
        statement = (
            select(CacheEntry)
            .where(CacheEntry.namespace == self.namespace)
            .order_by(CacheEntry.updated_at.desc(), CacheEntry.id.desc())
        )
        return [(entry.key, dict(entry.value_json or {})) for entry in self.session.scalars(statement).all()]

    def _entry(self, key: str) -> CacheEntry | None:
        return self.session.scalar(
            select(CacheEntry).where(CacheEntry.namespace == self.namespace, CacheEntry.key == key)
        )
