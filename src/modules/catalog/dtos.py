"""Catalog output DTOs (wire representations)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from modules.catalog.entities import Catalog, CatalogItem, Location, Store
from shared.domain.money import Money


class StoreOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    location: Location
    catalog_ids: List[str]
    metadata: Dict[str, Any]

    @classmethod
    def from_entity(cls, store: Store) -> StoreOutputDTO:
        return cls(
            id=store.id,
            name=store.name,
            location=store.location,
            catalog_ids=store.catalog_ids,
            metadata=store.metadata,
        )


class CatalogSummaryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    version: str
    store_id: str
    metadata: Dict[str, Any]
    updated_at: datetime

    @classmethod
    def from_entity(cls, catalog: Catalog) -> CatalogSummaryDTO:
        return cls(
            id=catalog.id,
            name=catalog.name,
            version=catalog.version,
            store_id=catalog.store_id,
            metadata=catalog.metadata,
            updated_at=catalog.updated_at,
        )


class CatalogItemOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: Optional[str]
    price: Money
    available: bool
    fulfillment_type: str
    metadata: Dict[str, Any]

    @classmethod
    def from_entity(cls, item: CatalogItem) -> CatalogItemOutputDTO:
        return cls(
            id=item.id,
            name=item.name,
            description=item.description,
            price=item.price,
            available=item.available,
            fulfillment_type=item.fulfillment_type,
            metadata=item.metadata,
        )


class CatalogOutputDTO(CatalogSummaryDTO):
    items: List[CatalogItemOutputDTO]

    @classmethod
    def from_entity(cls, catalog: Catalog) -> CatalogOutputDTO:
        return cls(
            id=catalog.id,
            name=catalog.name,
            version=catalog.version,
            store_id=catalog.store_id,
            metadata=catalog.metadata,
            updated_at=catalog.updated_at,
            items=[CatalogItemOutputDTO.from_entity(item) for item in catalog.items],
        )
