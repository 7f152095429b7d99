"""Order repository interfaces.

The Service Layer depends exclusively on these contracts (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import List, Optional

from modules.core.repositories.interfaces import IRepository
from modules.orders.entities import Order, PatchEvent


class IOrderRepository(IRepository[Order]):
    """Repository contract for the Order aggregate root.

    Status transitions and metadata changes are read-modify-writes and
    must happen inside ``locked(order_id)``.
    """

    @abstractmethod
    def get_by_source_cart(self, cart_id: str) -> Optional[Order]:
        """The order a cart was converted into, if any."""


class IPatchEventRepository(IRepository[PatchEvent]):
    """Append-only log of the patch events emitted per order."""

    @abstractmethod
    def list_for_order(self, order_id: str, after: int = 0) -> List[PatchEvent]:
        """Events of one order with ``sequence > after``, oldest first."""
