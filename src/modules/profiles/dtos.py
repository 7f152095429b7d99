"""Profile DTOs."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from modules.profiles.entities import SavedAddress, UserProfile


class UpdateProfileDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    display_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    preferences: Optional[Dict[str, Any]] = None


class ProfileOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    display_name: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    preferences: Dict[str, Any]
    saved_addresses: List[SavedAddress]
    updated_at: datetime

    @classmethod
    def from_entity(cls, profile: UserProfile) -> ProfileOutputDTO:
        return cls(
            user_id=profile.owner_id,
            display_name=profile.display_name,
            email=profile.email,
            phone=profile.phone,
            preferences=profile.preferences,
            saved_addresses=profile.saved_addresses,
            updated_at=profile.updated_at,
        )
