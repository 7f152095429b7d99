"""Cart policy engine.

Policies are declarative rules attached to a cart when it is created
(see ``CartPolicy``):

* ``expiration`` - ``value`` seconds; violated once the cart is older.
* ``max_items`` - ``value`` line items; violated when the cart already
  holds that many (so the next addition is refused).
* ``max_value`` - ``value`` is ``{"amount", "currency"}``; violated when
  the cart total is above it.  A cart in another currency is refused
  outright rather than compared.
* ``store_restrictions`` - accepted and stored, never violated.

``check_policies`` evaluates in declaration order and reports only the
first violation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Optional, Tuple

from django.utils import timezone

from modules.carts.entities import Cart, CartPolicy, PolicyType
from shared.domain.money import CurrencyMismatchError

__all__ = [
    "CartPolicy",
    "PolicyCurrencyMismatch",
    "PolicyType",
    "check_policies",
    "evaluate",
    "parse_policies",
]


class PolicyCurrencyMismatch(Exception):
    """A ``max_value`` policy and the cart are in different currencies."""

    def __init__(self, policy: CartPolicy, cart_currency: str) -> None:
        self.policy = policy
        self.cart_currency = cart_currency
        super().__init__(
            f"Cart currency {cart_currency} does not match policy currency "
            f"{policy.value.currency}."
        )


def evaluate(cart: Cart, policy: CartPolicy, now: Optional[datetime] = None) -> Optional[str]:
    """Return the violation message for ``policy``, or ``None`` when it holds."""
    if policy.type is PolicyType.EXPIRATION:
        now = now or timezone.now()
        if (now - cart.created_at).total_seconds() > policy.value:
            return policy.message or "Cart has expired"
    elif policy.type is PolicyType.MAX_ITEMS:
        if len(cart.items) >= policy.value:
            return policy.message or f"Cart cannot contain more than {policy.value} items"
    elif policy.type is PolicyType.MAX_VALUE:
        try:
            exceeded = cart.total.exceeds(policy.value)
        except CurrencyMismatchError as exc:
            raise PolicyCurrencyMismatch(policy, cart.total.currency) from exc
        if exceeded:
            return policy.message or (
                f"Cart total cannot exceed {policy.value.amount} {policy.value.currency}"
            )
    return None


def check_policies(
    cart: Cart, policies: Iterable[CartPolicy], now: Optional[datetime] = None
) -> Optional[Tuple[CartPolicy, str]]:
    """First violated policy and its message, in declaration order."""
    for policy in policies:
        message = evaluate(cart, policy, now)
        if message is not None:
            return policy, message
    return None


def parse_policies(raw: Iterable[Any]) -> List[CartPolicy]:
    return [p if isinstance(p, CartPolicy) else CartPolicy.model_validate(p) for p in raw]
