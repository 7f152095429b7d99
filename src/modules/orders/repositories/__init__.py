"""Order repositories package."""

from modules.orders.repositories.django_repository import (
    OrderDjangoRepository,
    PatchEventDjangoRepository,
)
from modules.orders.repositories.interfaces import IOrderRepository, IPatchEventRepository
from modules.orders.repositories.memory_repository import (
    OrderMemoryRepository,
    PatchEventMemoryRepository,
)

__all__ = [
    "IOrderRepository",
    "IPatchEventRepository",
    "OrderDjangoRepository",
    "OrderMemoryRepository",
    "PatchEventDjangoRepository",
    "PatchEventMemoryRepository",
]
