"""Cart repository interface."""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime

from modules.carts.entities import Cart
from modules.core.repositories.interfaces import IRepository


class ICartRepository(IRepository[Cart]):
    """Repository contract for carts.

    Item mutation is a read-modify-write of the whole cart, so services
    must do it inside ``locked(cart_id)``.
    """

    @abstractmethod
    def expire_stale(self, now: datetime) -> int:
        """Mark open carts whose lifetime elapsed as expired; returns the count."""

    @abstractmethod
    def purge(self, before: datetime) -> int:
        """Delete converted/expired carts last touched before ``before``."""
