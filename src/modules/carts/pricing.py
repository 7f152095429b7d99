"""Cart totals and promotions.

    subtotal = sum(price * quantity)
    discount = promotion applied to subtotal (never above subtotal)
    tax      = (subtotal - discount) * tax_rate
    total    = subtotal - discount + tax

Every amount is a ``Money`` quantized to cents, so the result depends only
on the multiset of items, never on the order they were added in.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Mapping, NamedTuple, Optional

from modules.carts.entities import AppliedPromotion, Cart, CartItem
from shared.domain.money import Money

PERCENTAGE = "percentage"
FIXED = "fixed"


class Totals(NamedTuple):
    subtotal: Money
    discount: Money
    tax: Money
    total: Money


def compute_discount(subtotal: Money, promotion: Optional[AppliedPromotion]) -> Money:
    if promotion is None:
        return Money.zero(subtotal.currency)
    value = Decimal(promotion.value)
    if promotion.kind == PERCENTAGE:
        discount = subtotal.times(value / Decimal("100"))
    else:
        discount = Money(amount=value, currency=subtotal.currency)
    if discount.exceeds(subtotal):
        return subtotal
    return discount.clamp_min_zero()


def compute_totals(
    items: Iterable[CartItem],
    currency: str,
    promotion: Optional[AppliedPromotion],
    tax_rate: Decimal,
) -> Totals:
    subtotal = Money.sum((item.line_total for item in items), currency)
    discount = compute_discount(subtotal, promotion)
    taxable = subtotal - discount
    tax = taxable.times(Decimal(tax_rate))
    return Totals(subtotal=subtotal, discount=discount, tax=tax, total=taxable + tax)


def reprice(
    cart: Cart,
    tax_rate: Decimal,
    items: Optional[Iterable[CartItem]] = None,
    promotion: Optional[AppliedPromotion] = None,
    **changes: Any,
) -> Cart:
    """Copy of ``cart`` with new items and/or promotion and recomputed totals."""
    new_items = list(cart.items if items is None else items)
    new_promotion = cart.promotion if promotion is None else promotion
    totals = compute_totals(new_items, cart.currency, new_promotion, tax_rate)
    return cart.model_copy(
        update={
            "items": new_items,
            "promotion": new_promotion,
            **totals._asdict(),
            **changes,
        }
    )


def resolve_promotion(
    promotion_type: str, code: str, promotions: Mapping[str, Mapping[str, Any]]
) -> Optional[AppliedPromotion]:
    """Look ``code`` up in the configured promotions; ``None`` if unknown."""
    normalized = code.strip().upper()
    rule: Optional[Dict[str, Any]] = None
    for configured_code, configured_rule in promotions.items():
        if configured_code.upper() == normalized:
            rule = dict(configured_rule)
            break
    if rule is None:
        return None
    applies_to = rule.get("applies_to")
    if applies_to and promotion_type not in applies_to:
        return None
    kind = rule.get("type", PERCENTAGE)
    if kind not in (PERCENTAGE, FIXED):
        return None
    try:
        value = Decimal(str(rule.get("value", "0")))
    except InvalidOperation:
        return None
    return AppliedPromotion(type=promotion_type, code=normalized, kind=kind, value=str(value))
