from django.db import models

from modules.carts.constants import CartStatus
from modules.core.models import BaseModel


class CartRecord(BaseModel):
    """Persisted cart; line items, totals and policies are JSON documents."""

    store_id = models.CharField(max_length=64, db_index=True)
    owner_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=CartStatus.choices,
        default=CartStatus.OPEN,
        db_index=True,
    )
    currency = models.CharField(max_length=3)
    items = models.JSONField(default=list)
    promotion = models.JSONField(null=True, blank=True)
    policies = models.JSONField(default=list)
    totals = models.JSONField(default=dict)
    lifetime_seconds = models.PositiveIntegerField()
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "carts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "updated_at"], name="cart_status_updated_idx"),
        ]

    def __str__(self) -> str:
        return f"Cart {self.id} [{self.status}]"
