"""Order domain exceptions.

Raised by ``OrderService``; rendered as problem documents by the DRF
exception handler.
"""

from __future__ import annotations

from modules.core.exceptions import (
    BusinessRuleViolation,
    ResourceConflict,
    ResourceNotFound,
)


class OrderNotFound(ResourceNotFound):
    title = "Order Not Found"
    slug = "order-not-found"
    default_detail = "Order does not exist."
    localization_key = "error.order.not_found"


class OrderCannotCancel(BusinessRuleViolation):
    """Only pending orders can be cancelled; a second cancel fails too."""

    status_code = 403
    title = "Order Cannot Be Cancelled"
    slug = "order-cannot-cancel"
    default_detail = "Order is not in a cancellable state."
    localization_key = "error.order.cannot_cancel"


class InvalidOrderStatus(ResourceConflict):
    """An invalid status transition was attempted."""

    title = "Invalid Order Status Transition"
    slug = "invalid-order-status"
    default_detail = "The order cannot move to the requested status."
    localization_key = "error.order.invalid_status"


class OrderNotRateable(BusinessRuleViolation):
    title = "Order Not Rateable"
    slug = "order-not-rateable"
    default_detail = "Can only rate completed orders."
    localization_key = "error.order.not_rateable"


class PaymentNotSettled(ResourceConflict):
    """Completion waits for the external payment settlement."""

    title = "Payment Not Settled"
    slug = "payment-not-settled"
    default_detail = "The order cannot complete until its payment is settled."
    localization_key = "error.order.payment_not_settled"
