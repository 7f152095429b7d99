"""Unit tests for WebhookService and the subscription serializer."""

from __future__ import annotations

import pytest

from modules.webhooks.dtos import CreateWebhookDTO, WebhookOutputDTO
from modules.webhooks.exceptions import WebhookNotFound
from modules.webhooks.repositories.memory_repository import WebhookMemoryRepository
from modules.webhooks.serializers import CreateWebhookSerializer
from modules.webhooks.services import SECRET_PREFIX, WebhookService

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return WebhookService(WebhookMemoryRepository())


@pytest.fixture()
def dto():
    return CreateWebhookDTO(url="https://example.com/hooks", events=["order.created"])


class TestWebhookService:
    def test_create_issues_a_secret(self, service, dto):
        webhook = service.create_webhook(dto, "user-1")
        assert webhook.secret.startswith(SECRET_PREFIX)
        assert webhook.active is True
        assert "secret" not in WebhookOutputDTO.from_entity(webhook).model_dump()

    def test_secrets_are_unique(self, service, dto):
        first = service.create_webhook(dto, "user-1")
        second = service.create_webhook(dto, "user-1")
        assert first.secret != second.secret

    def test_scoped_to_owner(self, service, dto):
        webhook = service.create_webhook(dto, "user-1")
        service.create_webhook(dto, "user-2")
        assert [w.id for w in service.list_webhooks("user-1")] == [webhook.id]
        with pytest.raises(WebhookNotFound):
            service.get_webhook(webhook.id, "user-2")
        with pytest.raises(WebhookNotFound):
            service.delete_webhook(webhook.id, "user-2")

    def test_delete(self, service, dto):
        webhook = service.create_webhook(dto, "user-1")
        service.delete_webhook(webhook.id, "user-1")
        with pytest.raises(WebhookNotFound):
            service.get_webhook(webhook.id, "user-1")


class TestCreateWebhookSerializer:
    def test_duplicate_events_collapse(self):
        serializer = CreateWebhookSerializer(
            data={
                "url": "https://example.com/hooks",
                "events": ["order.created", "cart.created", "order.created"],
            }
        )
        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data["events"] == ["order.created", "cart.created"]

    def test_unknown_event(self):
        serializer = CreateWebhookSerializer(
            data={"url": "https://example.com/hooks", "events": ["order.exploded"]}
        )
        assert not serializer.is_valid()
        assert "events" in serializer.errors

    def test_url_must_be_http(self):
        serializer = CreateWebhookSerializer(
            data={"url": "ftp://example.com/hooks", "events": ["order.created"]}
        )
        assert not serializer.is_valid()
        assert "url" in serializer.errors
