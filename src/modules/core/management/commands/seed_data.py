from __future__ import annotations

import random
from decimal import Decimal

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.catalog.entities import Catalog, CatalogItem, Location, Store
from modules.core.storage import get_repository
from shared.domain.money import Money

SEED_STORES = [
    (
        "Downtown Pizza",
        "100 Main St, Springfield",
        [
            ("pizza-margherita", "Margherita Pizza", Decimal("12.50"), "physical"),
            ("pizza-pepperoni", "Pepperoni Pizza", Decimal("14.00"), "physical"),
            ("garlic-bread", "Garlic Bread", Decimal("4.50"), "physical"),
            ("soda-can", "Soda Can", Decimal("1.99"), "physical"),
        ],
    ),
    (
        "Corner Books",
        "42 Library Ave, Springfield",
        [
            ("book-python", "Fluent Python", Decimal("49.99"), "physical"),
            ("ebook-django", "Django for APIs (eBook)", Decimal("29.00"), "digital"),
            ("gift-card", "Gift Card", Decimal("25.00"), "digital"),
        ],
    ),
]


class Command(BaseCommand):
    help = "Seed the configured store with development users, stores and catalogs."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        stores_created, items_created = self._seed_stores()

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"stores={stores_created}, "
                f"items={items_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="manager").exists():
            User.objects.create_user("manager", password="manager123", is_staff=True)
            created += 1
        if not User.objects.filter(username="user").exists():
            User.objects.create_user("user", password="user123")
            created += 1
        return created

    def _seed_stores(self) -> tuple[int, int]:
        self.stdout.write("Creating stores and catalogs...")
        stores = get_repository("stores")
        catalogs = get_repository("catalogs")
        currency = settings.COMMERCE.get("DEFAULT_CURRENCY", "USD")
        existing = {store.name for store in stores.list()}

        stores_created = items_created = 0
        for name, address, items in SEED_STORES:
            if name in existing:
                continue
            store = stores.create(Store(name=name, location=Location(address=address)))
            catalog = catalogs.create(
                Catalog(
                    name=f"{name} Menu",
                    store_id=store.id,
                    items=[
                        CatalogItem(
                            id=item_id,
                            name=item_name,
                            price=Money(amount=price, currency=currency),
                            stock=random.randint(10, 200) if fulfillment == "physical" else None,
                            fulfillment_type=fulfillment,
                        )
                        for item_id, item_name, price, fulfillment in items
                    ],
                )
            )
            stores.update(store.model_copy(update={"catalog_ids": [catalog.id]}))
            stores_created += 1
            items_created += len(items)

        self.stdout.write(self.style.SUCCESS("Creating stores and catalogs... Done!"))
        return stores_created, items_created
