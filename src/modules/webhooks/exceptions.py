"""Webhook domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import ResourceNotFound


class WebhookNotFound(ResourceNotFound):
    title = "Webhook Not Found"
    slug = "webhook-not-found"
    default_detail = "The requested webhook subscription does not exist."
    localization_key = "error.webhook.not_found"
