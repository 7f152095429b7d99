"""Webhook subscription entity."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from django.utils import timezone
from pydantic import BaseModel, Field


class Webhook(BaseModel):
    id: Optional[str] = None
    owner_id: str
    url: str
    events: List[str]
    description: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    # Signing secret; shown to the client once, when the subscription is created.
    secret: str
    active: bool = True
    created_at: datetime = Field(default_factory=timezone.now)
    updated_at: datetime = Field(default_factory=timezone.now)
