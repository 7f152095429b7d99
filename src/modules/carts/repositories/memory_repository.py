from __future__ import annotations

from datetime import datetime

from modules.carts.constants import CartStatus
from modules.carts.entities import Cart
from modules.carts.repositories.interfaces import ICartRepository
from modules.core.repositories.memory_repository import InMemoryRepository


class CartMemoryRepository(InMemoryRepository[Cart], ICartRepository):
    def expire_stale(self, now: datetime) -> int:
        count = 0
        for cart in self.list({"status": CartStatus.OPEN}):
            with self.locked(cart.id) as current:
                if current is not None and current.status == CartStatus.OPEN and current.is_expired(now):
                    self.update(
                        current.model_copy(update={"status": CartStatus.EXPIRED, "updated_at": now})
                    )
                    count += 1
        return count

    def purge(self, before: datetime) -> int:
        finished = (CartStatus.CONVERTED, CartStatus.EXPIRED)
        stale = [
            cart.id
            for cart in self.list()
            if cart.status in finished and cart.updated_at < before
        ]
        return sum(1 for cart_id in stale if self.delete(cart_id))
