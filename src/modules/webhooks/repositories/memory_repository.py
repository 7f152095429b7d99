from __future__ import annotations

from typing import List

from modules.core.repositories.memory_repository import InMemoryRepository
from modules.webhooks.entities import Webhook
from modules.webhooks.repositories.interfaces import IWebhookRepository


class WebhookMemoryRepository(InMemoryRepository[Webhook], IWebhookRepository):
    def list_for_owner(self, owner_id: str) -> List[Webhook]:
        return self.list({"owner_id": owner_id})
