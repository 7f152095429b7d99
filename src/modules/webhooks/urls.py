"""Webhook URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.webhooks.views import WebhookViewSet

router = DefaultRouter(trailing_slash=True)
router.include_root_view = False
router.register("webhooks", WebhookViewSet, basename="webhook")

urlpatterns = router.urls
