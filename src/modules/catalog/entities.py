"""Catalog domain entities: stores, catalogs and the items they sell."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from django.utils import timezone
from pydantic import BaseModel, Field

from shared.domain.money import Money

FulfillmentType = Literal["pickup", "physical", "digital", "hybrid"]


class Location(BaseModel):
    address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class Store(BaseModel):
    id: Optional[str] = None
    name: str
    location: Location
    catalog_ids: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=timezone.now)
    updated_at: datetime = Field(default_factory=timezone.now)


class CatalogItem(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Money
    available: bool = True
    # ``None`` means the item is not stock-tracked.
    stock: Optional[int] = None
    fulfillment_type: FulfillmentType = "physical"
    metadata: Dict[str, Any] = Field(default_factory=dict)


class Catalog(BaseModel):
    id: Optional[str] = None
    name: str
    version: str = "1.0"
    store_id: str
    items: List[CatalogItem] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=timezone.now)
    updated_at: datetime = Field(default_factory=timezone.now)

    def find_item(self, item_id: str) -> Optional[CatalogItem]:
        return next((item for item in self.items if item.id == item_id), None)
