"""Django ORM implementations of the order repositories."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError

from modules.core.repositories.django_repository import DjangoRepository
from modules.orders.entities import Order, PatchEvent
from modules.orders.models import OrderPatchEventRecord, OrderRecord
from modules.orders.repositories.interfaces import IOrderRepository, IPatchEventRepository


class OrderDjangoRepository(DjangoRepository[Order], IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    model = OrderRecord

    def _to_entity(self, record: OrderRecord) -> Order:
        return Order(
            id=str(record.id),
            owner_id=record.owner_id,
            status=record.status,
            order_type=record.order_type,
            source_cart_id=record.source_cart_id,
            items=record.items,
            total=record.total,
            fulfillment_type=record.fulfillment_type,
            delivery_address=record.delivery_address,
            notes=record.notes,
            metadata=record.metadata,
            returns=record.returns,
            event_sequence=record.event_sequence,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def _to_fields(self, entity: Order) -> Dict[str, Any]:
        data = entity.model_dump(mode="json", include={"items", "total", "metadata", "returns"})
        return {
            "owner_id": entity.owner_id,
            "status": entity.status,
            "order_type": entity.order_type,
            "source_cart_id": entity.source_cart_id,
            "items": data["items"],
            "total": data["total"],
            "fulfillment_type": entity.fulfillment_type,
            "delivery_address": entity.delivery_address,
            "notes": entity.notes,
            "metadata": data["metadata"],
            "returns": data["returns"],
            "event_sequence": entity.event_sequence,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        }

    def get_by_source_cart(self, cart_id: str) -> Optional[Order]:
        record = OrderRecord.objects.filter(source_cart_id=cart_id).first()
        return self._to_entity(record) if record else None


class PatchEventDjangoRepository(DjangoRepository[PatchEvent], IPatchEventRepository):
    model = OrderPatchEventRecord

    def _to_entity(self, record: OrderPatchEventRecord) -> PatchEvent:
        return PatchEvent(
            id=str(record.id),
            order_id=record.order_id,
            sequence=record.sequence,
            operations=record.operations,
            created_at=record.created_at,
        )

    def _to_fields(self, entity: PatchEvent) -> Dict[str, Any]:
        return {
            "order_id": entity.order_id,
            "sequence": entity.sequence,
            "operations": entity.operations,
            "created_at": entity.created_at,
            "updated_at": entity.created_at,
        }

    def list_for_order(self, order_id: str, after: int = 0) -> List[PatchEvent]:
        try:
            records = OrderPatchEventRecord.objects.filter(
                order_id=order_id, sequence__gt=after
            ).order_by("sequence")
            return [self._to_entity(record) for record in records]
        except (ValueError, ValidationError):
            return []
