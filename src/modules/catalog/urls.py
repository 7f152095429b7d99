"""Discovery URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.catalog.views import (
    CapabilitiesView,
    CatalogViewSet,
    DiscoveryView,
    StoreViewSet,
)

router = DefaultRouter(trailing_slash=True)
router.include_root_view = False
router.register("stores", StoreViewSet, basename="store")
router.register("catalogs", CatalogViewSet, basename="catalog")

urlpatterns = [
    path(".well-known/ocp", DiscoveryView.as_view(), name="ocp-discovery"),
    path("capabilities/", CapabilitiesView.as_view(), name="capabilities"),
    *router.urls,
]
