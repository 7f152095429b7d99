"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``DirectOrderItemDTO``: one line of a direct order.
- ``CreateOrderDTO``: input for order creation (from a cart or direct).
- ``UpdateOrderDTO``: staff status transition and/or metadata changes.
- ``RateOrderDTO``: ratings for a completed order.
- ``OrderOutputDTO``: the order representation patch events apply to.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from modules.orders.constants import OrderStatus, OrderType
from modules.orders.entities import Order, OrderItem
from shared.domain.money import Money

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class DirectOrderItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_id: str
    quantity: int = Field(ge=1)
    notes: Optional[str] = None
    customizations: Optional[Dict[str, Any]] = None


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    ``cart_id`` is used for ``from_cart`` orders and ``items`` for
    ``direct`` ones; the serializer guarantees the matching one is set.
    """

    model_config = ConfigDict(frozen=True)

    order_type: OrderType
    cart_id: Optional[str] = None
    items: List[DirectOrderItemDTO] = Field(default_factory=list)
    fulfillment_type: Optional[str] = None
    delivery_address: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class UpdateOrderDTO(BaseModel):
    """``metadata`` values of ``None`` remove the key."""

    model_config = ConfigDict(frozen=True)

    status: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class RateOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    food: Optional[int] = None
    delivery: Optional[int] = None
    restaurant: Optional[int] = None
    comment: Optional[str] = None


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderItemOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    cart_item_id: str
    item_id: str
    catalog_id: Optional[str]
    name: str
    quantity: int
    price: Money
    line_total: Money
    notes: Optional[str]
    customizations: Optional[Dict[str, Any]]

    @classmethod
    def from_entity(cls, item: OrderItem) -> OrderItemOutputDTO:
        return cls(
            cart_item_id=item.cart_item_id,
            item_id=item.item_id,
            catalog_id=item.catalog_id,
            name=item.name,
            quantity=item.quantity,
            price=item.price,
            line_total=item.line_total,
            notes=item.notes,
            customizations=item.customizations,
        )


class OrderOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    status: str
    items: List[OrderItemOutputDTO]
    total: Money
    fulfillment_type: Optional[str]
    delivery_address: Optional[Dict[str, Any]]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime
    metadata: Dict[str, Any]
    actions: List[Dict[str, str]]
    returns: List[Dict[str, Any]]

    @classmethod
    def from_entity(cls, order: Order) -> OrderOutputDTO:
        return cls(
            id=order.id,
            status=OrderStatus(order.status).value,
            items=[OrderItemOutputDTO.from_entity(item) for item in order.items],
            total=order.total,
            fulfillment_type=order.fulfillment_type,
            delivery_address=order.delivery_address,
            notes=order.notes,
            created_at=order.created_at,
            updated_at=order.updated_at,
            metadata=order.metadata,
            actions=order.actions(),
            returns=order.returns,
        )
