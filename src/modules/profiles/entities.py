"""User profile entity."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from django.utils import timezone
from pydantic import BaseModel, Field


class SavedAddress(BaseModel):
    label: Optional[str] = None
    address: str
    instructions: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class UserProfile(BaseModel):
    id: Optional[str] = None
    owner_id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    preferences: Dict[str, Any] = Field(default_factory=dict)
    saved_addresses: List[SavedAddress] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=timezone.now)
    updated_at: datetime = Field(default_factory=timezone.now)
