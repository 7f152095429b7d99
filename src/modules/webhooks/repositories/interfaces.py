from __future__ import annotations

from abc import abstractmethod
from typing import List

from modules.core.repositories.interfaces import IRepository
from modules.webhooks.entities import Webhook


class IWebhookRepository(IRepository[Webhook]):
    @abstractmethod
    def list_for_owner(self, owner_id: str) -> List[Webhook]:
        """Subscriptions of one principal, newest first."""
