from __future__ import annotations

from typing import List

from modules.catalog.entities import Catalog, Store
from modules.catalog.repositories.interfaces import ICatalogRepository, IStoreRepository
from modules.core.repositories.memory_repository import InMemoryRepository


class StoreMemoryRepository(InMemoryRepository[Store], IStoreRepository):
    pass


class CatalogMemoryRepository(InMemoryRepository[Catalog], ICatalogRepository):
    def list_for_store(self, store_id: str) -> List[Catalog]:
        return self.list({"store_id": store_id})
