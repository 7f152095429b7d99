"""Cart domain exceptions.

Raised by ``CartService``; rendered as problem documents by the DRF
exception handler.
"""

from __future__ import annotations

from modules.core.exceptions import (
    CREATE_CART_ACTION,
    BusinessRuleViolation,
    CommerceValidationError,
    ResourceExpired,
    ResourceNotFound,
    violation,
)


class CartNotFound(ResourceNotFound):
    title = "Cart Not Found"
    slug = "cart-not-found"
    default_detail = "The requested cart does not exist."
    localization_key = "error.cart.not_found"
    next_actions = [CREATE_CART_ACTION]


class CartExpired(ResourceExpired):
    title = "Cart Expired"
    slug = "cart-expired"
    default_detail = "The cart has expired and is no longer available."
    localization_key = "error.cart.expired"
    next_actions = [CREATE_CART_ACTION]


class CartItemNotFound(ResourceNotFound):
    title = "Cart Item Not Found"
    slug = "cart-item-not-found"
    default_detail = "The requested cart item does not exist."
    localization_key = "error.cart.item_not_found"


class PolicyViolation(BusinessRuleViolation):
    title = "Cart Policy Violation"
    slug = "cart-policy-violation"
    default_detail = "The cart violates one of its policies."
    localization_key = "error.cart.policy_violation"


class CurrencyMismatch(BusinessRuleViolation):
    title = "Currency Mismatch"
    slug = "currency-mismatch"
    default_detail = "Amounts in different currencies cannot be combined."
    localization_key = "error.cart.currency_mismatch"


class EmptyCart(BusinessRuleViolation):
    title = "Empty Cart"
    slug = "empty-cart"
    default_detail = "The cart has no items."
    localization_key = "error.cart.empty"


class InvalidPromotion(CommerceValidationError):
    title = "Invalid Promotion"
    slug = "invalid-promotion"
    default_detail = "The promotion code is invalid or has expired."
    localization_key = "error.promotion.invalid"

    def __init__(self, code: str) -> None:
        super().__init__(
            errors=[violation("Unknown or inapplicable promotion.", field="value", value=code)]
        )
