"""Order domain constants.

Defines status choices and valid status transitions for the order
state machine::

    pending -> confirmed -> in_transit -> completed
    pending -> cancelled
"""

from django.db import models

ORDER_DIRECT_CAPABILITY = "dev.ocp.order.direct"
DETAILED_STATUS_CAPABILITY = "dev.ocp.order.detailed_status"
DETAILED_STATUS_KEY = f"{DETAILED_STATUS_CAPABILITY}@1.0"
PAYMENT_CAPABILITY = "dev.ocp.payment.x402_fiat"
PAYMENT_KEY = f"{PAYMENT_CAPABILITY}@1.0"

CANCELLATION_KEY = "cancellation"
RATING_KEY = "rating"


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    IN_TRANSIT = "in_transit", "In transit"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class OrderType(models.TextChoices):
    FROM_CART = "from_cart", "From cart"
    DIRECT = "direct", "Direct"


class FulfillmentType(models.TextChoices):
    PICKUP = "pickup", "Pickup"
    DELIVERY = "delivery", "Delivery"
    DIGITAL = "digital", "Digital"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.IN_TRANSIT},
    OrderStatus.IN_TRANSIT: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}

# Progress reported in the detailed-status block for each status.
STATUS_PROGRESS: dict[str, int] = {
    OrderStatus.PENDING: 0,
    OrderStatus.CONFIRMED: 25,
    OrderStatus.IN_TRANSIT: 60,
    OrderStatus.COMPLETED: 100,
    OrderStatus.CANCELLED: 100,
}

RATING_FIELDS = ("food", "delivery", "restaurant")
RATING_MIN = 1
RATING_MAX = 5
