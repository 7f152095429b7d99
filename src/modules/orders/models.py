"""Order and patch-event tables.

Items, totals and metadata are JSON documents on the order row.  Patch
events are append-only; ``(order_id, sequence)`` is unique, so two
writers can never emit the same sequence number for one order.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import OrderStatus, OrderType


class OrderRecord(BaseModel):
    owner_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True,
    )
    order_type = models.CharField(max_length=20, choices=OrderType.choices)
    source_cart_id = models.CharField(max_length=64, null=True, blank=True, unique=True)
    items = models.JSONField(default=list)
    total = models.JSONField()
    fulfillment_type = models.CharField(max_length=20, null=True, blank=True)
    delivery_address = models.JSONField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    returns = models.JSONField(default=list, blank=True)
    event_sequence = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Order {self.id} [{self.status}]"


class OrderPatchEventRecord(BaseModel):
    order_id = models.CharField(max_length=64, db_index=True)
    sequence = models.PositiveIntegerField()
    operations = models.JSONField()

    class Meta:
        db_table = "order_patch_events"
        ordering = ["order_id", "sequence"]
        constraints = [
            models.UniqueConstraint(
                fields=["order_id", "sequence"], name="unique_order_event_sequence"
            ),
        ]
