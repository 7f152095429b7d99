"""Django ORM base repository.

Concrete repositories map one pydantic entity onto one table row (nested
collections live in JSON columns) by implementing ``_to_entity`` and
``_to_fields``.  ``locked`` opens a transaction and takes a row-level
lock with ``select_for_update()``, so a read-modify-write on one entity
is serialized against every other writer of that row.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Generic, Iterator, List, Optional, Type, TypeVar

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.core.repositories.interfaces import IRepository

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class DjangoRepository(IRepository[T], Generic[T]):
    model: Type[models.Model]

    def _to_entity(self, record: Any) -> T:
        raise NotImplementedError

    def _to_fields(self, entity: T) -> Dict[str, Any]:
        raise NotImplementedError

    def _queryset(self) -> models.QuerySet:
        return self.model.objects.all()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[T]:
        """Returns ``None`` for non-existent or malformed IDs."""
        try:
            record = self._queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None
        return self._to_entity(record) if record else None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[T]:
        queryset = self._queryset()
        if filters:
            try:
                queryset = queryset.filter(**filters)
                return [self._to_entity(record) for record in queryset]
            except (ValueError, ValidationError):
                return []
        return [self._to_entity(record) for record in queryset]

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, entity: T) -> T:
        fields = self._to_fields(entity)
        entity_id = getattr(entity, "id", None)
        if entity_id:
            fields["id"] = entity_id
        record = self.model.objects.create(**fields)
        logger.debug("repository.created", model=self.model.__name__, id=str(record.pk))
        return self._to_entity(record)

    @transaction.atomic
    def update(self, entity: T) -> T:
        entity_id = getattr(entity, "id")
        updated = self.model.objects.filter(id=entity_id).update(**self._to_fields(entity))
        if not updated:
            raise self.model.DoesNotExist(f"{self.model.__name__} {entity_id} not found.")
        return self.get_by_id(entity_id)

    @transaction.atomic
    def delete(self, id: str) -> bool:
        try:
            deleted, _ = self.model.objects.filter(id=id).delete()
        except (ValueError, ValidationError):
            return False
        return deleted > 0

    @contextmanager
    def locked(self, id: str) -> Iterator[Optional[T]]:
        with transaction.atomic():
            try:
                record = self._queryset().select_for_update().filter(id=id).first()
            except (ValueError, ValidationError):
                record = None
            yield self._to_entity(record) if record else None
