"""Unit tests for ProfileService."""

from __future__ import annotations

import pytest

from modules.core.exceptions import CommerceValidationError
from modules.profiles.dtos import UpdateProfileDTO
from modules.profiles.exceptions import SavedAddressLimitReached
from modules.profiles.repositories.memory_repository import UserProfileMemoryRepository
from modules.profiles.services import ProfileService

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return ProfileService(UserProfileMemoryRepository())


class TestProfileService:
    def test_profile_created_once(self, service):
        first = service.get_profile("user-1")
        assert service.get_profile("user-1").id == first.id
        assert service.get_profile("user-2").id != first.id

    def test_update_touches_only_given_fields(self, service):
        service.update_profile("user-1", UpdateProfileDTO(display_name="Sam", phone="555"))
        profile = service.update_profile("user-1", UpdateProfileDTO(phone=None))
        assert profile.display_name == "Sam"
        assert profile.phone is None

    def test_preferences_merge_and_null_removes(self, service):
        service.update_profile(
            "user-1", UpdateProfileDTO(preferences={"locale": "en", "currency": "USD"})
        )
        profile = service.update_profile(
            "user-1", UpdateProfileDTO(preferences={"currency": None, "marketing_opt_in": True})
        )
        assert profile.preferences == {"locale": "en", "marketing_opt_in": True}

    def test_custom_preferences_rejected_unless_allowed(self, service):
        dto = UpdateProfileDTO(preferences={"seat": "window"})
        with pytest.raises(CommerceValidationError) as exc:
            service.update_profile("user-1", dto)
        assert exc.value.errors[0]["field"] == "preferences.seat"
        profile = service.update_profile("user-1", dto, allow_custom_preferences=True)
        assert profile.preferences == {"seat": "window"}

    def test_address_limit(self, service):
        service.add_address("user-1", {"address": "1 Main St"}, max_saved_addresses=1)
        with pytest.raises(SavedAddressLimitReached):
            service.add_address("user-1", {"address": "2 Side St"}, max_saved_addresses=1)

    def test_remove_address_by_position(self, service):
        service.add_address("user-1", {"address": "1 Main St"})
        service.add_address("user-1", {"address": "2 Side St"})
        profile = service.remove_address("user-1", 0)
        assert [a.address for a in profile.saved_addresses] == ["2 Side St"]
        with pytest.raises(CommerceValidationError):
            service.remove_address("user-1", 3)
