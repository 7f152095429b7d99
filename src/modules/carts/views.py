"""Cart API views.

Exposes ``CartService`` over HTTP.  Domain exceptions are not caught
here: ``modules.core.exception_handler`` renders them as problem
documents.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.carts.dtos import (
    AddCartItemDTO,
    ApplyPromotionDTO,
    CartOutputDTO,
    CreateCartDTO,
    UpdateCartItemDTO,
)
from modules.carts.entities import Cart
from modules.carts.serializers import (
    AddCartItemSerializer,
    ApplyPromotionSerializer,
    CreateCartSerializer,
    UpdateCartItemSerializer,
)
from modules.carts.services import CartService
from modules.core.permissions import IsAuthenticatedOrGuest, principal_id
from modules.core.storage import get_repository


def cart_service() -> CartService:
    return CartService(
        cart_repository=get_repository("carts"),
        store_repository=get_repository("stores"),
        catalog_repository=get_repository("catalogs"),
    )


def _render(cart: Cart, status_code: int = status.HTTP_200_OK) -> Response:
    return Response(CartOutputDTO.from_entity(cart).model_dump(mode="json"), status=status_code)


class CartViewSet(GenericViewSet):
    """ViewSet for Cart operations.

    Uses ``CartService`` with injected repositories (DIP); all storage
    access goes through the service/repository layer.
    """

    permission_classes = [IsAuthenticatedOrGuest]
    lookup_value_regex = "[^/]+"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = cart_service()

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = None if self.action == "retrieve" else "cart_mutation"
        return super().get_throttles()

    def create(self, request: Request) -> Response:
        """POST /carts/"""
        serializer = CreateCartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cart = self._service.create_cart(
            CreateCartDTO(**serializer.validated_data), principal_id(request)
        )
        return _render(cart, status.HTTP_201_CREATED)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /carts/{pk}/"""
        return _render(self._service.get_cart(pk, principal_id(request)))

    @action(detail=True, methods=["post"])
    def items(self, request: Request, pk: str | None = None) -> Response:
        """POST /carts/{pk}/items/"""
        serializer = AddCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cart = self._service.add_item(
            pk, AddCartItemDTO(**serializer.validated_data), principal_id(request)
        )
        return _render(cart)

    @action(
        detail=True,
        methods=["patch", "delete"],
        url_path=r"items/(?P<cart_item_id>[^/]+)",
        url_name="item-detail",
    )
    def item_detail(
        self, request: Request, pk: str | None = None, cart_item_id: str | None = None
    ) -> Response:
        """PATCH / DELETE /carts/{pk}/items/{cart_item_id}/"""
        if request.method == "DELETE":
            return _render(self._service.remove_item(pk, cart_item_id, principal_id(request)))

        serializer = UpdateCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cart = self._service.update_item(
            pk,
            cart_item_id,
            UpdateCartItemDTO(**serializer.validated_data),
            principal_id(request),
        )
        return _render(cart)

    @action(detail=True, methods=["post"])
    def promotions(self, request: Request, pk: str | None = None) -> Response:
        """POST /carts/{pk}/promotions/"""
        serializer = ApplyPromotionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cart = self._service.apply_promotion(
            pk, ApplyPromotionDTO(**serializer.validated_data), principal_id(request)
        )
        return _render(cart)
