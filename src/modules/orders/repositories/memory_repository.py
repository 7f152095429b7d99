from __future__ import annotations

from typing import List, Optional

from modules.core.repositories.memory_repository import InMemoryRepository
from modules.orders.entities import Order, PatchEvent
from modules.orders.repositories.interfaces import IOrderRepository, IPatchEventRepository


class OrderMemoryRepository(InMemoryRepository[Order], IOrderRepository):
    def get_by_source_cart(self, cart_id: str) -> Optional[Order]:
        matches = self.list({"source_cart_id": cart_id})
        return matches[0] if matches else None


class PatchEventMemoryRepository(InMemoryRepository[PatchEvent], IPatchEventRepository):
    def list_for_order(self, order_id: str, after: int = 0) -> List[PatchEvent]:
        events = [e for e in self.list({"order_id": order_id}) if e.sequence > after]
        return sorted(events, key=lambda e: e.sequence)
