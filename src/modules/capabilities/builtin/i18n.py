"""Internationalization capability (``dev.ocp.i18n``).

Contributes ``GET /i18n/locales/``, which lists the configured locales
and the one negotiated from the request's ``Accept-Language`` header.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from django.urls import path
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.capabilities.base import CapabilityDescriptor, CapabilityImplementation
from modules.capabilities.builtin.common import is_versioned_block
from modules.capabilities.kinds import CapabilityKind

DEFAULT_NUMBER_FORMAT = {"decimal_separator": ".", "grouping_separator": ","}


def parse_accept_language(header: Optional[str]) -> List[str]:
    """Language ranges of an ``Accept-Language`` header, best first."""
    ranges = []
    for position, part in enumerate((header or "").split(",")):
        code, _, params = part.strip().partition(";")
        if not code:
            continue
        quality = 1.0
        if params.strip().startswith("q="):
            try:
                quality = float(params.strip()[2:])
            except ValueError:
                quality = 0.0
        ranges.append((-quality, position, code.strip()))
    return [code for _, _, code in sorted(ranges)]


def negotiate_locale(
    header: Optional[str], default_locale: str, locales: List[Dict[str, Any]]
) -> Optional[Dict[str, Any]]:
    """Exact code match first, then a regional variant of the language."""
    for requested in parse_accept_language(header):
        for locale in locales:
            if locale["code"].lower() == requested.lower():
                return locale
        for locale in locales:
            if locale["code"].lower().startswith(requested.lower() + "-"):
                return locale
    fallback = next((loc for loc in locales if loc["code"] == default_locale), None)
    return fallback or (locales[0] if locales else None)


def validate_i18n(value: Any) -> bool:
    if not is_versioned_block(value):
        return False
    if not isinstance(value.get("default_locale"), str) or not value["default_locale"]:
        return False
    locales = value.get("supported_locales")
    if not isinstance(locales, list):
        return False
    for locale in locales:
        if not isinstance(locale, dict) or not isinstance(locale.get("code"), str):
            return False
        number_format = locale.get("number_format")
        if not isinstance(number_format, dict) or not number_format.get("decimal_separator"):
            return False
    return True


def process_i18n(value: Dict[str, Any]) -> Dict[str, Any]:
    value["supported_locales"] = [
        {
            **locale,
            "is_rtl": locale.get("is_rtl") is True,
            "number_format": {**DEFAULT_NUMBER_FORMAT, **locale.get("number_format", {})},
        }
        for locale in value["supported_locales"]
    ]
    return value


class LocalesView(APIView):
    """GET /i18n/locales/"""

    permission_classes = [AllowAny]
    config: Dict[str, Any] = {}

    def get(self, request: Request) -> Response:
        default_locale = self.config.get("default_locale", "en")
        locales = self.config.get("supported_locales", [])
        resolved = negotiate_locale(
            request.headers.get("Accept-Language"), default_locale, locales
        )
        response = Response(
            {
                "default_locale": default_locale,
                "supported_locales": locales,
                "resolved_locale": resolved,
            }
        )
        if resolved is not None:
            response["Content-Language"] = resolved["code"]
        return response


def build(descriptor: CapabilityDescriptor, config: Dict[str, Any]) -> CapabilityImplementation:
    return CapabilityImplementation(
        descriptor=descriptor,
        kind=CapabilityKind.I18N,
        routes=(path("i18n/locales/", LocalesView.as_view(config=config), name="i18n-locales"),),
        validator=validate_i18n,
        processor=process_i18n,
    )
