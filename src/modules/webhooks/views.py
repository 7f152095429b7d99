"""Webhook subscription API views."""

from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.permissions import principal_id
from modules.core.storage import get_repository
from modules.webhooks.dtos import CreateWebhookDTO, WebhookCreatedDTO, WebhookOutputDTO
from modules.webhooks.serializers import CreateWebhookSerializer
from modules.webhooks.services import WebhookService


def webhook_service() -> WebhookService:
    return WebhookService(webhook_repository=get_repository("webhooks"))


class WebhookViewSet(GenericViewSet):
    """GET/POST /webhooks/, GET/DELETE /webhooks/{id}/"""

    permission_classes = [IsAuthenticated]
    lookup_value_regex = "[^/]+"
    collection_name = "subscriptions"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = webhook_service()

    def list(self, request: Request) -> Response:
        webhooks = self._service.list_webhooks(principal_id(request))
        page = self.paginate_queryset(webhooks)
        data = [WebhookOutputDTO.from_entity(w).model_dump(mode="json") for w in page]
        return self.get_paginated_response(data)

    def create(self, request: Request) -> Response:
        serializer = CreateWebhookSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        webhook = self._service.create_webhook(
            CreateWebhookDTO(**serializer.validated_data), principal_id(request)
        )
        return Response(
            WebhookCreatedDTO.from_entity(webhook).model_dump(mode="json"),
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        webhook = self._service.get_webhook(pk, principal_id(request))
        return Response(WebhookOutputDTO.from_entity(webhook).model_dump(mode="json"))

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        self._service.delete_webhook(pk, principal_id(request))
        return Response(status=status.HTTP_204_NO_CONTENT)
