from __future__ import annotations

from abc import abstractmethod
from typing import Optional

from modules.core.repositories.interfaces import IRepository
from modules.profiles.entities import UserProfile


class IUserProfileRepository(IRepository[UserProfile]):
    @abstractmethod
    def get_for_owner(self, owner_id: str) -> Optional[UserProfile]:
        """The profile of one principal, ``None`` until first written."""
