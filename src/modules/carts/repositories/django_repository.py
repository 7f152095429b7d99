"""Django ORM implementation of the Cart repository."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

import structlog
from django.db import transaction

from modules.carts.constants import CartStatus
from modules.carts.entities import Cart
from modules.carts.models import CartRecord
from modules.carts.repositories.interfaces import ICartRepository
from modules.core.repositories.django_repository import DjangoRepository

logger = structlog.get_logger(__name__)


class CartDjangoRepository(DjangoRepository[Cart], ICartRepository):
    model = CartRecord

    def _to_entity(self, record: CartRecord) -> Cart:
        return Cart(
            id=str(record.id),
            store_id=record.store_id,
            owner_id=record.owner_id,
            status=record.status,
            currency=record.currency,
            items=record.items,
            promotion=record.promotion,
            policies=record.policies,
            lifetime_seconds=record.lifetime_seconds,
            metadata=record.metadata,
            created_at=record.created_at,
            updated_at=record.updated_at,
            **record.totals,
        )

    def _to_fields(self, entity: Cart) -> Dict[str, Any]:
        data = entity.model_dump(
            mode="json",
            include={"items", "promotion", "policies", "metadata", "subtotal", "discount", "tax", "total"},
        )
        return {
            "store_id": entity.store_id,
            "owner_id": entity.owner_id,
            "status": entity.status,
            "currency": entity.currency,
            "items": data["items"],
            "promotion": data["promotion"],
            "policies": data["policies"],
            "totals": {key: data[key] for key in ("subtotal", "discount", "tax", "total")},
            "lifetime_seconds": entity.lifetime_seconds,
            "metadata": data["metadata"],
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        }

    @transaction.atomic
    def expire_stale(self, now: datetime) -> int:
        open_carts = CartRecord.objects.filter(status=CartStatus.OPEN).only(
            "id", "created_at", "lifetime_seconds"
        )
        stale = [
            record.pk
            for record in open_carts
            if (now - record.created_at).total_seconds() > record.lifetime_seconds
        ]
        count = CartRecord.objects.filter(pk__in=stale).update(
            status=CartStatus.EXPIRED, updated_at=now
        )
        logger.info("cart.expired_marked", count=count)
        return count

    @transaction.atomic
    def purge(self, before: datetime) -> int:
        deleted, _ = CartRecord.objects.filter(
            status__in=[CartStatus.CONVERTED, CartStatus.EXPIRED],
            updated_at__lt=before,
        ).delete()
        return deleted
