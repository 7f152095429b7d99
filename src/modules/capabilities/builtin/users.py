"""User profile capability.

Routes, mounted while ``dev.ocp.user.profile`` is enabled:

* ``GET``/``PUT /users/<id>/profile/``
* ``POST /users/<id>/profile/addresses/``
* ``DELETE /users/<id>/profile/addresses/<index>/``

A principal reaches only its own profile; staff reach any.  The config
entry sets ``max_saved_addresses`` and ``allow_custom_preferences``.
"""

from __future__ import annotations

from typing import Any, Dict

from django.urls import path
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.capabilities.base import CapabilityDescriptor, CapabilityImplementation
from modules.capabilities.kinds import CapabilityKind
from modules.core.permissions import is_staff, principal_id
from modules.core.storage import get_repository
from modules.profiles.dtos import ProfileOutputDTO, UpdateProfileDTO
from modules.profiles.exceptions import ProfileAccessDenied
from modules.profiles.serializers import SavedAddressSerializer, UpdateProfileSerializer
from modules.profiles.services import DEFAULT_MAX_SAVED_ADDRESSES, ProfileService


def profile_service() -> ProfileService:
    return ProfileService(profile_repository=get_repository("profiles"))


def render(profile) -> Dict[str, Any]:
    return ProfileOutputDTO.from_entity(profile).model_dump(mode="json")


class ProfileView(APIView):
    """Shared access rule for the profile routes."""

    permission_classes = [IsAuthenticated]
    config: Dict[str, Any] = {}

    def initial(self, request: Request, *args, **kwargs) -> None:
        super().initial(request, *args, **kwargs)
        if kwargs["user_id"] != principal_id(request) and not is_staff(request):
            raise ProfileAccessDenied()
        self.service = profile_service()


class UserProfileView(ProfileView):
    """GET/PUT /users/{user_id}/profile/"""

    def get(self, request: Request, user_id: str) -> Response:
        return Response(render(self.service.get_profile(user_id)))

    def put(self, request: Request, user_id: str) -> Response:
        serializer = UpdateProfileSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profile = self.service.update_profile(
            user_id,
            UpdateProfileDTO(**serializer.validated_data),
            allow_custom_preferences=self.config.get("allow_custom_preferences") is True,
        )
        return Response(render(profile))


class SavedAddressListView(ProfileView):
    """POST /users/{user_id}/profile/addresses/"""

    def post(self, request: Request, user_id: str) -> Response:
        serializer = SavedAddressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profile = self.service.add_address(
            user_id,
            serializer.validated_data,
            max_saved_addresses=int(
                self.config.get("max_saved_addresses") or DEFAULT_MAX_SAVED_ADDRESSES
            ),
        )
        return Response(render(profile), status=status.HTTP_201_CREATED)


class SavedAddressDetailView(ProfileView):
    """DELETE /users/{user_id}/profile/addresses/{index}/"""

    def delete(self, request: Request, user_id: str, index: int) -> Response:
        return Response(render(self.service.remove_address(user_id, index)))


def build(descriptor: CapabilityDescriptor, config: Dict[str, Any]) -> CapabilityImplementation:
    return CapabilityImplementation(
        descriptor=descriptor,
        kind=CapabilityKind.USER_PROFILE,
        routes=(
            path(
                "users/<str:user_id>/profile/",
                UserProfileView.as_view(config=config),
                name="user-profile",
            ),
            path(
                "users/<str:user_id>/profile/addresses/",
                SavedAddressListView.as_view(config=config),
                name="user-profile-addresses",
            ),
            path(
                "users/<str:user_id>/profile/addresses/<int:index>/",
                SavedAddressDetailView.as_view(config=config),
                name="user-profile-address",
            ),
        ),
    )
