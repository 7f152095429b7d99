"""Discovery API views.

Public, read-only endpoints a client calls before anything else: the
``/.well-known/ocp`` pointer document, the enabled capability list, and
the stores/catalogs the server sells from.
"""

from __future__ import annotations

from django.conf import settings
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.capabilities.kinds import CapabilityKind
from modules.capabilities.registry import get_registry
from modules.catalog.dtos import CatalogOutputDTO, CatalogSummaryDTO, StoreOutputDTO
from modules.catalog.exceptions import CatalogNotFound
from modules.core.storage import get_repository

CONTEXT_URL = "https://schemas.ocp.dev/context.jsonld"


class DiscoveryView(APIView):
    """GET /.well-known/ocp"""

    permission_classes = [AllowAny]

    def get(self, request: Request) -> Response:
        commerce = settings.COMMERCE
        base_url = commerce["BASE_URL"].rstrip("/")
        document = {
            "capabilities": f"{base_url}/capabilities",
            "version": commerce.get("PROTOCOL_VERSION", "1.0.0"),
            "context": CONTEXT_URL,
        }
        if get_registry().is_enabled(CapabilityKind.PAYMENT_X402_FIAT.value):
            document["payment"] = f"{base_url}/payment"
        return Response({"OCP": document})


class CapabilitiesView(APIView):
    """GET /capabilities"""

    permission_classes = [AllowAny]

    def get(self, request: Request) -> Response:
        return Response({"capabilities": get_registry().get_enabled_capabilities()})


class StoreViewSet(GenericViewSet):
    """GET /stores"""

    permission_classes = [AllowAny]
    collection_name = "stores"

    def list(self, request: Request) -> Response:
        stores = get_repository("stores").list()
        page = self.paginate_queryset(stores)
        data = [StoreOutputDTO.from_entity(s).model_dump(mode="json") for s in page]
        return self.get_paginated_response(data)


class CatalogViewSet(GenericViewSet):
    """GET /catalogs, GET /catalogs/{id}"""

    permission_classes = [AllowAny]
    collection_name = "catalogs"

    def list(self, request: Request) -> Response:
        repository = get_repository("catalogs")
        store_id = request.query_params.get("store_id")
        catalogs = repository.list_for_store(store_id) if store_id else repository.list()
        page = self.paginate_queryset(catalogs)
        data = [CatalogSummaryDTO.from_entity(c).model_dump(mode="json") for c in page]
        return self.get_paginated_response(data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        catalog = get_repository("catalogs").get_by_id(pk)
        if catalog is None:
            raise CatalogNotFound(f"Catalog {pk} not found.")
        return Response(CatalogOutputDTO.from_entity(catalog).model_dump(mode="json"))
