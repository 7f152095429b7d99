"""Cart DRF serializers for API input.

Serializers validate the wire shape only; the resulting data is turned
into the Pydantic DTOs of ``dtos.py`` and handed to ``CartService``.
Responses are rendered from ``CartOutputDTO``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.carts.constants import PromotionType


class CreateCartSerializer(serializers.Serializer):
    store_id = serializers.CharField(max_length=64)
    metadata = serializers.DictField(required=False, default=dict)


class AddCartItemSerializer(serializers.Serializer):
    item_id = serializers.CharField(max_length=64)
    quantity = serializers.IntegerField(min_value=1)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    customizations = serializers.DictField(required=False, allow_null=True)


class UpdateCartItemSerializer(serializers.Serializer):
    """Partial update: omitted fields are left untouched."""

    quantity = serializers.IntegerField(min_value=1, required=False)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    customizations = serializers.DictField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError(
                "At least one of quantity, notes or customizations is required."
            )
        return attrs


class ApplyPromotionSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=PromotionType.choices)
    value = serializers.CharField(max_length=64)
