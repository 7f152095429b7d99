"""User profile service.

A profile is created on first access and keyed by the principal that
owns it.  Every change is a read-modify-write under the repository lock.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

import structlog
from django.utils import timezone

from modules.core.exceptions import CommerceValidationError, violation
from modules.profiles.entities import SavedAddress, UserProfile
from modules.profiles.exceptions import SavedAddressLimitReached

if TYPE_CHECKING:
    from datetime import datetime

    from modules.profiles.dtos import UpdateProfileDTO
    from modules.profiles.repositories.interfaces import IUserProfileRepository

logger = structlog.get_logger(__name__)

DEFAULT_MAX_SAVED_ADDRESSES = 10

# Accepted without ``allow_custom_preferences``.
STANDARD_PREFERENCES = frozenset(
    {"locale", "currency", "dietary_restrictions", "marketing_opt_in", "default_fulfillment"}
)


class ProfileService:
    def __init__(
        self,
        profile_repository: IUserProfileRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._profiles = profile_repository
        self._clock = clock or timezone.now

    def get_profile(self, owner_id: str) -> UserProfile:
        profile = self._profiles.get_for_owner(owner_id)
        if profile is None:
            now = self._clock()
            profile = self._profiles.create(
                UserProfile(owner_id=owner_id, created_at=now, updated_at=now)
            )
            logger.info("profile.created", owner_id=owner_id, profile_id=profile.id)
        return profile

    def update_profile(
        self, owner_id: str, dto: UpdateProfileDTO, allow_custom_preferences: bool = False
    ) -> UserProfile:
        changes = dto.model_dump(exclude_unset=True)
        preferences = changes.pop("preferences", None)
        if preferences is not None and not allow_custom_preferences:
            unknown = sorted(set(preferences) - STANDARD_PREFERENCES)
            if unknown:
                raise CommerceValidationError(
                    errors=[
                        violation("Custom preferences are not enabled.", field=f"preferences.{key}")
                        for key in unknown
                    ]
                )

        profile_id = self.get_profile(owner_id).id
        with self._profiles.locked(profile_id) as profile:
            if preferences is not None:
                changes["preferences"] = _merge_preferences(profile.preferences, preferences)
            saved = self._profiles.update(
                profile.model_copy(update={**changes, "updated_at": self._clock()})
            )
        logger.info("profile.updated", owner_id=owner_id, fields=sorted(changes))
        return saved

    def add_address(
        self,
        owner_id: str,
        address: Dict[str, Any],
        max_saved_addresses: int = DEFAULT_MAX_SAVED_ADDRESSES,
    ) -> UserProfile:
        profile_id = self.get_profile(owner_id).id
        with self._profiles.locked(profile_id) as profile:
            if len(profile.saved_addresses) >= max_saved_addresses:
                raise SavedAddressLimitReached(
                    f"A profile can hold at most {max_saved_addresses} saved addresses."
                )
            addresses = [*profile.saved_addresses, SavedAddress(**address)]
            saved = self._profiles.update(
                profile.model_copy(
                    update={"saved_addresses": addresses, "updated_at": self._clock()}
                )
            )
        logger.info("profile.address_added", owner_id=owner_id, count=len(addresses))
        return saved

    def remove_address(self, owner_id: str, index: int) -> UserProfile:
        profile_id = self.get_profile(owner_id).id
        with self._profiles.locked(profile_id) as profile:
            if not 0 <= index < len(profile.saved_addresses):
                raise CommerceValidationError.for_field(
                    "index", "No saved address at this position.", index
                )
            addresses = [a for i, a in enumerate(profile.saved_addresses) if i != index]
            saved = self._profiles.update(
                profile.model_copy(
                    update={"saved_addresses": addresses, "updated_at": self._clock()}
                )
            )
        logger.info("profile.address_removed", owner_id=owner_id, index=index)
        return saved


def _merge_preferences(current: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    """Shallow merge; a ``None`` value removes the preference."""
    merged = {**current, **changes}
    return {key: value for key, value in merged.items() if value is not None}
