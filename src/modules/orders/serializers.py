"""Order DRF serializers for API input.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.  Rating ranges and metadata key
shapes are checked by ``OrderService`` so every caller gets the same
errors.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import OrderType

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class DirectOrderItemSerializer(serializers.Serializer):
    """Validates a single item of a direct order."""

    item_id = serializers.CharField(max_length=64)
    quantity = serializers.IntegerField(min_value=1)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    customizations = serializers.DictField(required=False, allow_null=True)


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    order_type = serializers.ChoiceField(choices=OrderType.choices, default=OrderType.FROM_CART)
    cart_id = serializers.CharField(max_length=64, required=False)
    items = DirectOrderItemSerializer(many=True, required=False)
    fulfillment_type = serializers.CharField(max_length=32, required=False, allow_null=True)
    delivery_address = serializers.DictField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    metadata = serializers.DictField(required=False, default=dict)

    def validate(self, attrs):
        if attrs["order_type"] == OrderType.FROM_CART and not attrs.get("cart_id"):
            raise serializers.ValidationError(
                {"cart_id": "Required for orders created from a cart."}
            )
        if attrs["order_type"] == OrderType.DIRECT and not attrs.get("items"):
            raise serializers.ValidationError({"items": "Required for direct orders."})
        return attrs


class UpdateOrderSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=32, required=False)
    metadata = serializers.DictField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one of status or metadata is required.")
        return attrs


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)


class RateOrderSerializer(serializers.Serializer):
    food = serializers.IntegerField(required=False, allow_null=True)
    delivery = serializers.IntegerField(required=False, allow_null=True)
    restaurant = serializers.IntegerField(required=False, allow_null=True)
    comment = serializers.CharField(required=False, allow_null=True, allow_blank=True)
