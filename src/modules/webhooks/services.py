"""Webhook subscription service.

Subscriptions are owned by the principal that created them; other
principals get ``WebhookNotFound``.  Delivery is handled elsewhere.
"""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING, Callable, List, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.webhooks.entities import Webhook
from modules.webhooks.exceptions import WebhookNotFound

if TYPE_CHECKING:
    from datetime import datetime

    from modules.webhooks.dtos import CreateWebhookDTO
    from modules.webhooks.repositories.interfaces import IWebhookRepository

logger = structlog.get_logger(__name__)

SECRET_PREFIX = "whsec_"


class WebhookService:
    def __init__(
        self,
        webhook_repository: IWebhookRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._webhooks = webhook_repository
        self._clock = clock or timezone.now

    @transaction.atomic
    def create_webhook(self, dto: CreateWebhookDTO, owner_id: str) -> Webhook:
        now = self._clock()
        webhook = self._webhooks.create(
            Webhook(
                owner_id=owner_id,
                url=dto.url,
                events=list(dto.events),
                description=dto.description,
                metadata=dict(dto.metadata),
                secret=f"{SECRET_PREFIX}{secrets.token_urlsafe(32)}",
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(
            "webhook.created", webhook_id=webhook.id, owner_id=owner_id, events=webhook.events
        )
        return webhook

    def get_webhook(self, webhook_id: str, owner_id: str) -> Webhook:
        webhook = self._webhooks.get_by_id(webhook_id)
        if webhook is None or webhook.owner_id != owner_id:
            raise WebhookNotFound(f"Webhook {webhook_id} not found.")
        return webhook

    def list_webhooks(self, owner_id: str) -> List[Webhook]:
        return self._webhooks.list_for_owner(owner_id)

    @transaction.atomic
    def delete_webhook(self, webhook_id: str, owner_id: str) -> None:
        webhook = self.get_webhook(webhook_id, owner_id)
        self._webhooks.delete(webhook.id)
        logger.info("webhook.deleted", webhook_id=webhook.id, owner_id=owner_id)
