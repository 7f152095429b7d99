"""Django ORM implementations of the catalog repositories."""

from __future__ import annotations

from typing import Any, Dict, List

from modules.catalog.entities import Catalog, Store
from modules.catalog.models import CatalogRecord, StoreRecord
from modules.catalog.repositories.interfaces import ICatalogRepository, IStoreRepository
from modules.core.repositories.django_repository import DjangoRepository


class StoreDjangoRepository(DjangoRepository[Store], IStoreRepository):
    model = StoreRecord

    def _to_entity(self, record: StoreRecord) -> Store:
        return Store(
            id=str(record.id),
            name=record.name,
            location=record.location,
            catalog_ids=record.catalog_ids,
            metadata=record.metadata,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def _to_fields(self, entity: Store) -> Dict[str, Any]:
        data = entity.model_dump(mode="json", include={"location", "catalog_ids", "metadata"})
        return {
            **data,
            "name": entity.name,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        }


class CatalogDjangoRepository(DjangoRepository[Catalog], ICatalogRepository):
    model = CatalogRecord

    def _to_entity(self, record: CatalogRecord) -> Catalog:
        return Catalog(
            id=str(record.id),
            name=record.name,
            version=record.version,
            store_id=record.store_id,
            items=record.items,
            metadata=record.metadata,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def _to_fields(self, entity: Catalog) -> Dict[str, Any]:
        data = entity.model_dump(mode="json", include={"items", "metadata"})
        return {
            **data,
            "name": entity.name,
            "version": entity.version,
            "store_id": entity.store_id,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        }

    def list_for_store(self, store_id: str) -> List[Catalog]:
        return [
            self._to_entity(record)
            for record in CatalogRecord.objects.filter(store_id=store_id)
        ]
