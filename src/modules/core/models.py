"""Base abstract model for commerce records.

``BaseModel`` gives every table a UUIDv7 primary key plus ``created_at`` /
``updated_at`` columns.  The timestamps are owned by the domain entity the
row stores: repositories copy them from the entity instead of letting the
ORM stamp them, so the value a client sees in a patch event is exactly the
value persisted.
"""

from __future__ import annotations

import uuid6
from django.db import models
from django.utils import timezone


class BaseModel(models.Model):
    """Abstract base with UUIDv7 PK and entity-owned timestamps."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        abstract = True
        ordering = ["-created_at"]


def new_id() -> str:
    """Identifier for entities created outside the ORM (in-memory stores)."""
    return str(uuid6.uuid7())
