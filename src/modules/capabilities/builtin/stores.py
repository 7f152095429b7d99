"""Store info capability: ``GET /stores/<id>/info/``.

Extended store details are read from the store's location and plain
``metadata`` fields (``telephone``, ``email``, ``url``,
``opening_hours``, ``payment_accepted``, ``currencies_accepted``,
``aggregate_rating``); the config flags decide which are exposed.
"""

from __future__ import annotations

from typing import Any, Dict

from django.urls import path
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.capabilities.base import CapabilityDescriptor, CapabilityImplementation
from modules.capabilities.kinds import CapabilityKind
from modules.catalog.entities import Store
from modules.catalog.exceptions import StoreNotFound
from modules.core.storage import get_repository

CONTACT_FIELDS = ("telephone", "email", "url")
POLICY_FIELDS = ("payment_accepted", "currencies_accepted")


def describe_store(store: Store, config: Dict[str, Any]) -> Dict[str, Any]:
    info: Dict[str, Any] = {
        "id": store.id,
        "name": store.name,
        "address": {"street_address": store.location.address},
    }
    location = store.location
    if config.get("include_location", True) and location.latitude is not None:
        info["geo"] = {"latitude": location.latitude, "longitude": location.longitude}
    if config.get("include_contact_info"):
        info.update({f: store.metadata[f] for f in CONTACT_FIELDS if f in store.metadata})
    if config.get("include_hours") and "opening_hours" in store.metadata:
        info["opening_hours"] = store.metadata["opening_hours"]
    if config.get("include_policies"):
        info.update({f: store.metadata[f] for f in POLICY_FIELDS if f in store.metadata})
    if config.get("include_ratings") and "aggregate_rating" in store.metadata:
        info["aggregate_rating"] = store.metadata["aggregate_rating"]
    return info


class StoreInfoView(APIView):
    """GET /stores/{store_id}/info/"""

    permission_classes = [AllowAny]
    config: Dict[str, Any] = {}

    def get(self, request: Request, store_id: str) -> Response:
        store = get_repository("stores").get_by_id(store_id)
        if store is None:
            raise StoreNotFound(f"Store {store_id} not found.")
        return Response(describe_store(store, self.config))


def build(descriptor: CapabilityDescriptor, config: Dict[str, Any]) -> CapabilityImplementation:
    return CapabilityImplementation(
        descriptor=descriptor,
        kind=CapabilityKind.STORE_INFO,
        routes=(
            path(
                "stores/<str:store_id>/info/",
                StoreInfoView.as_view(config=config),
                name="store-info",
            ),
        ),
    )
