from __future__ import annotations

from typing import Optional

from modules.core.repositories.memory_repository import InMemoryRepository
from modules.profiles.entities import UserProfile
from modules.profiles.repositories.interfaces import IUserProfileRepository


class UserProfileMemoryRepository(InMemoryRepository[UserProfile], IUserProfileRepository):
    def get_for_owner(self, owner_id: str) -> Optional[UserProfile]:
        matches = self.list({"owner_id": owner_id})
        return matches[0] if matches else None
