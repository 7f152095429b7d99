"""Webhook DRF serializers for API input."""

from __future__ import annotations

from django.conf import settings
from rest_framework import serializers


class CreateWebhookSerializer(serializers.Serializer):
    url = serializers.URLField(max_length=500)
    events = serializers.ListField(child=serializers.CharField(), allow_empty=False)
    description = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    metadata = serializers.DictField(required=False, default=dict)

    def validate_url(self, value: str) -> str:
        if not value.lower().startswith(("http://", "https://")):
            raise serializers.ValidationError("Only http and https URLs are supported.")
        return value

    def validate_events(self, value: list[str]) -> list[str]:
        supported = settings.COMMERCE.get("WEBHOOK_EVENTS", [])
        unknown = [event for event in value if event not in supported]
        if unknown:
            raise serializers.ValidationError(
                f"Unsupported events: {', '.join(unknown)}. "
                f"Supported: {', '.join(supported)}."
            )
        # Keep first occurrence order, drop duplicates.
        return list(dict.fromkeys(value))
