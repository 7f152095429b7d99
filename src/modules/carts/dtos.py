"""Cart DTOs for the Service Layer.

Input DTOs are the contracts between the API layer (DRF serializers) and
``CartService``; ``CartOutputDTO`` is the wire representation of a cart.
All are immutable (``frozen=True``).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from modules.carts.constants import CartStatus, PromotionType
from modules.carts.entities import Cart, CartItem
from shared.domain.money import Money

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateCartDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    store_id: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class AddCartItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_id: str
    quantity: int = Field(ge=1)
    notes: Optional[str] = None
    customizations: Optional[Dict[str, Any]] = None


class UpdateCartItemDTO(BaseModel):
    """Partial update; only fields present in ``model_fields_set`` change.

    An explicit ``notes=None`` clears the notes.
    """

    model_config = ConfigDict(frozen=True)

    quantity: Optional[int] = Field(default=None, ge=1)
    notes: Optional[str] = None
    customizations: Optional[Dict[str, Any]] = None


class ApplyPromotionDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: PromotionType
    value: str


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class CartItemOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    cart_item_id: str
    item_id: str
    catalog_id: str
    name: str
    quantity: int
    price: Money
    line_total: Money
    notes: Optional[str]
    customizations: Optional[Dict[str, Any]]

    @classmethod
    def from_entity(cls, item: CartItem) -> CartItemOutputDTO:
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


class CartOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    store_id: str
    status: str
    items: List[CartItemOutputDTO]
    promotion: Optional[Dict[str, Any]]
    subtotal: Money
    discount: Money
    tax: Money
    total: Money
    created_at: datetime
    updated_at: datetime
    metadata: Dict[str, Any]

    @classmethod
    def from_entity(cls, cart: Cart) -> CartOutputDTO:
        promotion = None
        if cart.promotion is not None:
            promotion = {"type": cart.promotion.type, "value": cart.promotion.code}
        return cls(
            id=cart.id,
            store_id=cart.store_id,
            status=CartStatus(cart.status).value,
            items=[CartItemOutputDTO.from_entity(item) for item in cart.items],
            promotion=promotion,
            subtotal=cart.subtotal,
            discount=cart.discount,
            tax=cart.tax,
            total=cart.total,
            created_at=cart.created_at,
            updated_at=cart.updated_at,
            metadata=cart.metadata,
        )
