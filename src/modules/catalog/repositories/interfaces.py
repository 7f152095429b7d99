"""Catalog repository interfaces."""

from __future__ import annotations

from abc import abstractmethod
from typing import List, Optional, Tuple

from modules.catalog.entities import Catalog, CatalogItem, Store
from modules.core.repositories.interfaces import IRepository


class IStoreRepository(IRepository[Store]):
    """Repository contract for stores."""


class ICatalogRepository(IRepository[Catalog]):
    """Repository contract for catalogs and their items."""

    @abstractmethod
    def list_for_store(self, store_id: str) -> List[Catalog]:
        """Catalogs offered by one store."""

    def find_item(self, store_id: str, item_id: str) -> Optional[Tuple[Catalog, CatalogItem]]:
        """Locate an item across the catalogs of a store."""
        for catalog in self.list_for_store(store_id):
            item = catalog.find_item(item_id)
            if item is not None:
                return catalog, item
        return None

    def all_items(self) -> List[Tuple[Catalog, CatalogItem]]:
        return [(catalog, item) for catalog in self.list() for item in catalog.items]
