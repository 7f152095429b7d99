from __future__ import annotations

from typing import Optional, Sequence, Tuple

from rest_framework.permissions import BasePermission
from rest_framework.request import Request


def principal_id(request: Request) -> Optional[str]:
    """Identifier of the authenticated principal, ``None`` for guests."""
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return None
    return str(user.pk)


def is_staff(request: Request) -> bool:
    user = getattr(request, "user", None)
    return bool(user is not None and user.is_authenticated and user.is_staff)


def guest_allowed(capability: str, flag: str) -> bool:
    """True when ``capability`` is enabled and its config sets ``flag``."""
    from modules.capabilities.registry import get_registry

    registry = get_registry()
    if not registry.is_enabled(capability):
        return False
    config = registry.get_config(capability) or {}
    return config.get(flag) is True


class IsAuthenticatedOrGuest(BasePermission):
    """Authenticated principals always pass; guests only when configured.

    Guest access is granted when any ``(capability, flag)`` pair of
    ``guest_flags`` names an enabled capability whose configuration sets
    the flag to true.
    """

    guest_flags: Sequence[Tuple[str, str]] = (("dev.ocp.cart", "allow_guest_checkout"),)

    def has_permission(self, request: Request, view) -> bool:
        if request.user and request.user.is_authenticated:
            return True
        return any(guest_allowed(capability, flag) for capability, flag in self.guest_flags)


class IsAuthenticatedOrGuestOrder(IsAuthenticatedOrGuest):
    guest_flags = (
        ("dev.ocp.cart", "allow_guest_checkout"),
        ("dev.ocp.order.direct", "allow_guest_orders"),
    )


class IsStaff(BasePermission):
    def has_permission(self, request: Request, view) -> bool:
        return is_staff(request)
