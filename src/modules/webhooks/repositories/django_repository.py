"""Django ORM implementation of the webhook repository."""

from __future__ import annotations

from typing import Any, Dict, List

from modules.core.repositories.django_repository import DjangoRepository
from modules.webhooks.entities import Webhook
from modules.webhooks.models import WebhookRecord
from modules.webhooks.repositories.interfaces import IWebhookRepository


class WebhookDjangoRepository(DjangoRepository[Webhook], IWebhookRepository):
    model = WebhookRecord

    def _to_entity(self, record: WebhookRecord) -> Webhook:
        return Webhook(
            id=str(record.id),
            owner_id=record.owner_id,
            url=record.url,
            events=record.events,
            description=record.description,
            metadata=record.metadata,
            secret=record.secret,
            active=record.active,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def _to_fields(self, entity: Webhook) -> Dict[str, Any]:
        return entity.model_dump(exclude={"id"})

    def list_for_owner(self, owner_id: str) -> List[Webhook]:
        return self.list({"owner_id": owner_id})
