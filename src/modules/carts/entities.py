"""Cart domain entities."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from django.utils import timezone
from pydantic import BaseModel, ConfigDict, Field, model_validator

from modules.carts.constants import CartStatus
from shared.domain.money import Money


class PolicyType(str, Enum):
    EXPIRATION = "expiration"
    MAX_ITEMS = "max_items"
    MAX_VALUE = "max_value"
    STORE_RESTRICTIONS = "store_restrictions"


class CartPolicy(BaseModel):
    """One declarative rule evaluated by ``modules.carts.policies``."""

    model_config = ConfigDict(frozen=True)

    type: PolicyType
    value: Any = None
    message: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_money(cls, data: Any) -> Any:
        if (
            isinstance(data, dict)
            and data.get("type") == PolicyType.MAX_VALUE.value
            and isinstance(data.get("value"), dict)
        ):
            return {**data, "value": Money.model_validate(data["value"])}
        return data

    @model_validator(mode="after")
    def _check_value(self) -> CartPolicy:
        if self.type in (PolicyType.EXPIRATION, PolicyType.MAX_ITEMS):
            if isinstance(self.value, bool) or not isinstance(self.value, int) or self.value < 1:
                raise ValueError(f"{self.type.value} policy needs a positive integer value.")
        elif self.type is PolicyType.MAX_VALUE and not isinstance(self.value, Money):
            raise ValueError("max_value policy needs an {amount, currency} value.")
        return self

    def to_metadata(self) -> Dict[str, Any]:
        value = self.value.model_dump(mode="json") if isinstance(self.value, Money) else self.value
        data: Dict[str, Any] = {"type": self.type.value, "value": value}
        if self.message:
            data["message"] = self.message
        return data


class CartItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    cart_item_id: str
    item_id: str
    catalog_id: str
    name: str
    quantity: int = Field(ge=1)
    price: Money
    notes: Optional[str] = None
    customizations: Optional[Dict[str, Any]] = None

    @property
    def line_total(self) -> Money:
        return self.price.times(self.quantity)


class AppliedPromotion(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    code: str
    kind: str
    value: str


class Cart(BaseModel):
    id: Optional[str] = None
    store_id: str
    owner_id: Optional[str] = None
    status: CartStatus = CartStatus.OPEN
    currency: str
    items: List[CartItem] = Field(default_factory=list)
    promotion: Optional[AppliedPromotion] = None
    policies: List[CartPolicy] = Field(default_factory=list)
    subtotal: Money
    discount: Money
    tax: Money
    total: Money
    lifetime_seconds: int
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=timezone.now)
    updated_at: datetime = Field(default_factory=timezone.now)

    @property
    def expires_at(self) -> datetime:
        return self.created_at + timedelta(seconds=self.lifetime_seconds)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.status == CartStatus.EXPIRED:
            return True
        now = now or timezone.now()
        return (now - self.created_at).total_seconds() > self.lifetime_seconds

    def find_item(self, cart_item_id: str) -> Optional[CartItem]:
        return next((i for i in self.items if i.cart_item_id == cart_item_id), None)
