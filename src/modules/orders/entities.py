"""Order domain entities."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from django.utils import timezone
from pydantic import BaseModel, ConfigDict, Field

from modules.orders.constants import VALID_TRANSITIONS, OrderStatus, OrderType
from shared.domain.money import Money


class OrderItem(BaseModel):
    """Snapshot of one purchased line; prices never follow the catalog."""

    model_config = ConfigDict(frozen=True)

    cart_item_id: str
    item_id: str
    catalog_id: Optional[str] = None
    name: str
    quantity: int = Field(ge=1)
    price: Money
    notes: Optional[str] = None
    customizations: Optional[Dict[str, Any]] = None

    @property
    def line_total(self) -> Money:
        return self.price.times(self.quantity)


class Order(BaseModel):
    """Order aggregate root.

    ``status`` changes only through ``OrderService``; ``event_sequence`` is
    the sequence number of the last patch event emitted for the order.
    """

    id: Optional[str] = None
    owner_id: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING
    order_type: OrderType = OrderType.FROM_CART
    source_cart_id: Optional[str] = None
    items: List[OrderItem] = Field(default_factory=list)
    total: Money
    fulfillment_type: Optional[str] = None
    delivery_address: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    returns: List[Dict[str, Any]] = Field(default_factory=list)
    event_sequence: int = 0
    created_at: datetime = Field(default_factory=timezone.now)
    updated_at: datetime = Field(default_factory=timezone.now)

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def actions(self) -> List[Dict[str, str]]:
        """Hypermedia links for what the client may do next."""
        base = f"/orders/{self.id}"
        actions = []
        if self.status == OrderStatus.PENDING:
            actions.append(
                {"id": "cancel", "href": f"{base}/cancel/", "method": "POST", "title": "Cancel Order"}
            )
        if self.status == OrderStatus.COMPLETED:
            actions.append(
                {"id": "rate", "href": f"{base}/ratings/", "method": "POST", "title": "Rate Order"}
            )
        actions.append(
            {"id": "updates", "href": f"{base}/updates/", "method": "GET", "title": "Order Updates"}
        )
        return actions


class PatchEvent(BaseModel):
    """One atomic batch of JSON Patch operations for an order."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    order_id: str
    sequence: int = Field(ge=1)
    operations: List[Dict[str, Any]]
    created_at: datetime = Field(default_factory=timezone.now)
