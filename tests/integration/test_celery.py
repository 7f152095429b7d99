"""Integration tests for the Celery configuration and cart housekeeping."""

from datetime import timedelta

import pytest
from django.utils import timezone

from modules.carts.models import CartRecord

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def _celery_eager(settings):
    """Run tasks synchronously in the test process."""
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


class TestCeleryConfig:
    """Celery loads through Django settings."""

    def test_celery_app_is_importable(self):
        from config.celery import app

        assert app.main == "open_commerce"

    def test_celery_app_exported_from_init(self):
        from config import celery_app

        assert celery_app.main == "open_commerce"

    def test_celery_broker_url_configured(self, settings):
        assert settings.CELERY_BROKER_URL is not None
        assert "redis" in settings.CELERY_BROKER_URL

    def test_celery_serializer_is_json(self, settings):
        assert settings.CELERY_TASK_SERIALIZER == "json"
        assert settings.CELERY_RESULT_SERIALIZER == "json"
        assert settings.CELERY_ACCEPT_CONTENT == ["json"]

    def test_celery_timezone_matches_django(self, settings):
        assert settings.CELERY_TIMEZONE == settings.TIME_ZONE

    def test_housekeeping_is_scheduled(self, settings):
        entry = settings.CELERY_BEAT_SCHEDULE["purge-expired-carts"]
        assert entry["task"] == "carts.purge_expired_carts"


class TestPurgeExpiredCarts:
    """Cart housekeeping in eager mode."""

    def test_nothing_to_do(self):
        from modules.carts.tasks import purge_expired_carts

        result = purge_expired_carts.apply()

        assert result.successful()
        assert result.result == {"expired": 0, "purged": 0}

    def test_expires_then_purges(self, auth_client, store):
        from modules.carts.tasks import purge_expired_carts

        cart = auth_client.post("/carts/", {"store_id": store.id}, format="json").json()
        CartRecord.objects.filter(id=cart["id"]).update(
            created_at=timezone.now() - timedelta(hours=2)
        )

        assert purge_expired_carts() == {"expired": 1, "purged": 0}
        assert CartRecord.objects.get(id=cart["id"]).status == "expired"

        CartRecord.objects.filter(id=cart["id"]).update(
            updated_at=timezone.now() - timedelta(days=2)
        )
        assert purge_expired_carts() == {"expired": 0, "purged": 1}
        assert not CartRecord.objects.filter(id=cart["id"]).exists()
