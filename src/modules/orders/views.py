"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.  Domain
exceptions are not caught here: ``modules.core.exception_handler``
renders them as problem documents.
"""

from __future__ import annotations

from django.conf import settings
from django.http import StreamingHttpResponse
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.renderers import JSONRenderer
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.carts.views import cart_service
from modules.core.permissions import (
    IsAuthenticatedOrGuestOrder,
    IsStaff,
    is_staff,
    principal_id,
)
from modules.core.renderers import EventStreamRenderer
from modules.core.storage import get_repository
from modules.orders.channels import PatchEventStream, get_hub
from modules.orders.dtos import (
    CreateOrderDTO,
    OrderOutputDTO,
    RateOrderDTO,
    UpdateOrderDTO,
)
from modules.orders.entities import Order
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    RateOrderSerializer,
    UpdateOrderSerializer,
)
from modules.orders.services import OrderService


def order_service() -> OrderService:
    return OrderService(
        order_repository=get_repository("orders"),
        event_repository=get_repository("order_events"),
        cart_service=cart_service(),
        catalog_repository=get_repository("catalogs"),
    )


def _render(order: Order, status_code: int = status.HTTP_200_OK) -> Response:
    return Response(OrderOutputDTO.from_entity(order).model_dump(mode="json"), status=status_code)


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all storage access goes through
    the service/repository layer.
    """

    permission_classes = [IsAuthenticatedOrGuestOrder]
    lookup_value_regex = "[^/]+"
    collection_name = "orders"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = order_service()

    def get_permissions(self):
        if self.action == "partial_update":
            return [IsStaff()]
        return super().get_permissions()

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = "order_creation" if self.action == "create" else None
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /orders/"""
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.create_order(
            CreateOrderDTO(**serializer.validated_data), principal_id(request)
        )
        return _render(order, status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /orders/?status=pending"""
        orders = self._service.list_orders(
            principal_id(request), is_staff(request), request.query_params.get("status")
        )
        page = self.paginate_queryset(orders)
        data = [OrderOutputDTO.from_entity(order).model_dump(mode="json") for order in page]
        return self.get_paginated_response(data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /orders/{pk}/"""
        return _render(self._service.get_order(pk, principal_id(request), is_staff(request)))

    # ------------------------------------------------------------------
    # Status / metadata update (staff)
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /orders/{pk}/

        Cancellations are **not** allowed via this endpoint; use
        ``POST /orders/{id}/cancel/`` instead.
        """
        serializer = UpdateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.update_order(
            pk,
            UpdateOrderDTO(**serializer.validated_data),
            principal_id(request),
            staff=True,
        )
        return _render(order)

    # ------------------------------------------------------------------
    # Customer actions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /orders/{pk}/cancel/"""
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.cancel_order(
            pk, serializer.validated_data["reason"], principal_id(request), is_staff(request)
        )
        return _render(order)

    @action(detail=True, methods=["post"])
    def ratings(self, request: Request, pk: str | None = None) -> Response:
        """POST /orders/{pk}/ratings/"""
        serializer = RateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.rate_order(
            pk,
            RateOrderDTO(**serializer.validated_data),
            principal_id(request),
            is_staff(request),
        )
        return _render(order, status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # Live updates
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get"], renderer_classes=[JSONRenderer, EventStreamRenderer])
    def updates(self, request: Request, pk: str | None = None) -> StreamingHttpResponse:
        """GET /orders/{pk}/updates/

        Server-sent events carrying JSON Patch batches.  Clients fetch the
        order first, then apply each ``order.patch`` event in ``id`` order.
        """
        subscription = self._service.subscribe(pk, principal_id(request), is_staff(request))
        stream = PatchEventStream(
            get_hub(),
            subscription,
            float(settings.COMMERCE.get("STREAM_KEEPALIVE_SECONDS", 15)),
        )
        response = StreamingHttpResponse(stream, content_type="text/event-stream")
        response["Cache-Control"] = "no-cache"
        response["X-Accel-Buffering"] = "no"
        return response
