"""Generic repository interface (Dependency Inversion Principle).

Provides ``IRepository[T]``, the base abstract class that all
domain-specific repository interfaces extend.  Service-layer code
depends on this abstraction, never on Django ORM directly, so the
store can be swapped (``COMMERCE["STORAGE_BACKEND"]``).

Entities handed out by a repository are copies: mutating one has no
effect until it is passed back to ``update``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base generic repository contract.

    Type parameter ``T`` represents the domain entity managed by the
    repository (e.g. ``Cart``, ``Order``).
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its identifier; ``None`` if unknown."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[T]:
        """List entities with optional equality filters, newest first."""

    @abstractmethod
    def create(self, entity: T) -> T:
        """Persist a new entity and return it with its assigned ``id``."""

    @abstractmethod
    def update(self, entity: T) -> T:
        """Overwrite the stored state of an existing entity."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Remove an entity; ``False`` when it did not exist."""

    @abstractmethod
    def locked(self, id: str) -> AbstractContextManager[Optional[T]]:
        """Hold an exclusive lock on one entity for a read-modify-write.

        Yields the current entity (or ``None``).  Concurrent ``locked``
        calls for the same id are serialized until the block exits, so an
        ``update`` issued inside the block cannot lose a concurrent write.
        """
