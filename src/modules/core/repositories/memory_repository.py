"""Process-local repository for pydantic entities.

Used when ``COMMERCE["STORAGE_BACKEND"] == "memory"`` and in unit tests.
Entities are deep-copied on the way in and out.  ``locked`` serializes
writers per id with a re-entrant lock; readers never wait.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Dict, Generic, Iterator, List, Optional, TypeVar

from pydantic import BaseModel

from modules.core.models import new_id
from modules.core.repositories.interfaces import IRepository

E = TypeVar("E", bound=BaseModel)


class InMemoryRepository(IRepository[E], Generic[E]):
    def __init__(self) -> None:
        self._items: Dict[str, E] = {}
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}

    def get_by_id(self, id: str) -> Optional[E]:
        with self._guard:
            entity = self._items.get(str(id))
        return entity.model_copy(deep=True) if entity is not None else None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[E]:
        with self._guard:
            entities = list(self._items.values())
        if filters:
            entities = [
                e
                for e in entities
                if all(getattr(e, key, None) == value for key, value in filters.items())
            ]
        entities.sort(key=lambda e: getattr(e, "created_at", None), reverse=True)
        return [e.model_copy(deep=True) for e in entities]

    def create(self, entity: E) -> E:
        entity_id = getattr(entity, "id", None) or new_id()
        stored = entity.model_copy(update={"id": entity_id}, deep=True)
        with self._guard:
            self._items[entity_id] = stored
        return stored.model_copy(deep=True)

    def update(self, entity: E) -> E:
        entity_id = getattr(entity, "id")
        with self._guard:
            if entity_id not in self._items:
                raise LookupError(f"{type(entity).__name__} {entity_id} not found.")
            self._items[entity_id] = entity.model_copy(deep=True)
        return entity.model_copy(deep=True)

    def delete(self, id: str) -> bool:
        with self._guard:
            self._locks.pop(str(id), None)
            return self._items.pop(str(id), None) is not None

    @contextmanager
    def locked(self, id: str) -> Iterator[Optional[E]]:
        with self._guard:
            lock = self._locks.setdefault(str(id), threading.RLock())
        with lock:
            yield self.get_by_id(id)

    def clear(self) -> None:
        with self._guard:
            self._items.clear()
            self._locks.clear()
