import copy

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.capabilities.registry import reset_registry
from modules.catalog.entities import Catalog, CatalogItem, Location, Store
from modules.core.storage import get_repository, reset_repositories
from modules.orders.channels import reset_hub
from shared.domain.money import Money

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _fresh_singletons():
    """Registry, repositories and the order hub are process-wide; isolate tests."""
    reset_registry()
    reset_repositories()
    reset_hub()
    yield
    reset_registry()
    reset_repositories()
    reset_hub()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def user():
    return User.objects.create_user(username="shopper", password="testpass123")


@pytest.fixture()
def other_user():
    return User.objects.create_user(username="other-shopper", password="testpass123")


@pytest.fixture()
def staff_user():
    return User.objects.create_user(username="manager", password="testpass123", is_staff=True)


@pytest.fixture()
def auth_client(user):
    """APIClient with a force-authenticated Django user."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture()
def capabilities(settings):
    """Reconfigure one capability for the duration of a test.

    ``capabilities("dev.ocp.cart", max_items=2)`` assigns a new
    ``COMMERCE_CAPABILITIES`` so the registry is rebuilt.
    """

    def configure(namespace, **entry):
        config = copy.deepcopy(settings.COMMERCE_CAPABILITIES)
        config[namespace] = {**config.get(namespace, {}), **entry}
        settings.COMMERCE_CAPABILITIES = config
        return config[namespace]

    return configure


def build_catalog_items():
    return [
        CatalogItem(
            id="burger",
            name="Classic Burger",
            description="Beef patty with cheddar",
            price=Money(amount="10.00", currency="USD"),
            stock=5,
        ),
        CatalogItem(
            id="fries",
            name="French Fries",
            price=Money(amount="3.50", currency="USD"),
        ),
        CatalogItem(
            id="milkshake",
            name="Vanilla Milkshake",
            price=Money(amount="4.25", currency="USD"),
            available=False,
        ),
        CatalogItem(
            id="wine",
            name="House Wine",
            price=Money(amount="8.00", currency="EUR"),
        ),
    ]


@pytest.fixture()
def store():
    """A store with one catalog, persisted in the configured backend."""
    stores = get_repository("stores")
    created = stores.create(
        Store(name="Burger Place", location=Location(address="1 Main St"))
    )
    catalog = get_repository("catalogs").create(
        Catalog(name="Menu", store_id=created.id, items=build_catalog_items())
    )
    return stores.update(created.model_copy(update={"catalog_ids": [catalog.id]}))


@pytest.fixture()
def catalog(store):
    return get_repository("catalogs").list_for_store(store.id)[0]


@pytest.fixture()
def catalog_items():
    return build_catalog_items()
