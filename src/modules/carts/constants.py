"""Cart domain constants."""

from django.db import models

CART_CAPABILITY = "dev.ocp.cart"
CART_METADATA_KEY = f"{CART_CAPABILITY}@1.0"


class CartStatus(models.TextChoices):
    OPEN = "open", "Open"
    CONVERTED = "converted", "Converted"
    EXPIRED = "expired", "Expired"


class PromotionType(models.TextChoices):
    PROMO_CODE = "promo_code", "Promo code"
    GIFT_CARD = "gift_card", "Gift card"
    LOYALTY_POINTS = "loyalty_points", "Loyalty points"
