"""Profile DRF serializers for API input."""

from __future__ import annotations

from rest_framework import serializers


class UpdateProfileSerializer(serializers.Serializer):
    display_name = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, max_length=150
    )
    email = serializers.EmailField(required=False, allow_null=True)
    phone = serializers.CharField(required=False, allow_null=True, max_length=40)
    preferences = serializers.DictField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field must be provided.")
        return attrs


class SavedAddressSerializer(serializers.Serializer):
    label = serializers.CharField(required=False, allow_null=True, max_length=50)
    address = serializers.CharField(max_length=500)
    instructions = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    latitude = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    longitude = serializers.FloatField(
        required=False, allow_null=True, min_value=-180, max_value=180
    )
