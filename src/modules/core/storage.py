"""Repository factory.

Services receive repositories through their constructor; views obtain
them here.  ``COMMERCE["STORAGE_BACKEND"]`` picks the implementation:
``django`` (ORM, ``select_for_update`` row locks) or ``memory``
(process-local maps with per-id locks).  One instance per repository and
backend is shared by the process so in-memory state survives between
requests.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

REPOSITORIES = {
    "stores": {
        "django": "modules.catalog.repositories.django_repository.StoreDjangoRepository",
        "memory": "modules.catalog.repositories.memory_repository.StoreMemoryRepository",
    },
    "catalogs": {
        "django": "modules.catalog.repositories.django_repository.CatalogDjangoRepository",
        "memory": "modules.catalog.repositories.memory_repository.CatalogMemoryRepository",
    },
    "carts": {
        "django": "modules.carts.repositories.django_repository.CartDjangoRepository",
        "memory": "modules.carts.repositories.memory_repository.CartMemoryRepository",
    },
    "orders": {
        "django": "modules.orders.repositories.django_repository.OrderDjangoRepository",
        "memory": "modules.orders.repositories.memory_repository.OrderMemoryRepository",
    },
    "order_events": {
        "django": "modules.orders.repositories.django_repository.PatchEventDjangoRepository",
        "memory": "modules.orders.repositories.memory_repository.PatchEventMemoryRepository",
    },
    "webhooks": {
        "django": "modules.webhooks.repositories.django_repository.WebhookDjangoRepository",
        "memory": "modules.webhooks.repositories.memory_repository.WebhookMemoryRepository",
    },
    "profiles": {
        "django": "modules.profiles.repositories.django_repository.UserProfileDjangoRepository",
        "memory": "modules.profiles.repositories.memory_repository.UserProfileMemoryRepository",
    },
}


def storage_backend() -> str:
    backend = settings.COMMERCE.get("STORAGE_BACKEND", "django")
    if backend not in ("django", "memory"):
        raise ImproperlyConfigured(
            f"COMMERCE['STORAGE_BACKEND'] must be 'django' or 'memory', got {backend!r}."
        )
    return backend


@lru_cache(maxsize=None)
def _build(name: str, backend: str) -> Any:
    return import_string(REPOSITORIES[name][backend])()


def get_repository(name: str) -> Any:
    """Return the shared repository instance for ``name``."""
    if name not in REPOSITORIES:
        raise KeyError(f"Unknown repository {name!r}.")
    return _build(name, storage_backend())


def reset_repositories() -> None:
    """Forget shared instances (in-memory stores start empty again)."""
    _build.cache_clear()
