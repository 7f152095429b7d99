"""Django ORM implementation of the profile repository."""

from __future__ import annotations

from typing import Any, Dict, Optional

from modules.core.repositories.django_repository import DjangoRepository
from modules.profiles.entities import UserProfile
from modules.profiles.models import UserProfileRecord
from modules.profiles.repositories.interfaces import IUserProfileRepository


class UserProfileDjangoRepository(DjangoRepository[UserProfile], IUserProfileRepository):
    model = UserProfileRecord

    def _to_entity(self, record: UserProfileRecord) -> UserProfile:
        return UserProfile(
            id=str(record.id),
            owner_id=record.owner_id,
            display_name=record.display_name,
            email=record.email,
            phone=record.phone,
            preferences=record.preferences,
            saved_addresses=record.saved_addresses,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def _to_fields(self, entity: UserProfile) -> Dict[str, Any]:
        data = entity.model_dump(mode="json", include={"preferences", "saved_addresses"})
        return {
            "owner_id": entity.owner_id,
            "display_name": entity.display_name,
            "email": entity.email,
            "phone": entity.phone,
            "preferences": data["preferences"],
            "saved_addresses": data["saved_addresses"],
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        }

    def get_for_owner(self, owner_id: str) -> Optional[UserProfile]:
        record = self.model.objects.filter(owner_id=owner_id).first()
        return self._to_entity(record) if record else None
