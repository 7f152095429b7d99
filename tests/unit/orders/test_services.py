"""Unit tests for OrderService, the order lifecycle engine.

Uses in-memory repositories, an explicit registry and a private hub and
event bus so each test sees only its own patch events.

Covers:
- Creation from a cart (exactly once) and direct creation.
- The state machine, cancellation and payment settlement.
- Ratings on completed orders.
- Patch events: one per change, gap-free sequence numbers, replay.
- Visibility and listing rules.
- Domain events and live broadcast after commit.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.utils import timezone

from modules.capabilities.registry import build_registry
from modules.carts.dtos import AddCartItemDTO, CreateCartDTO
from modules.carts.exceptions import CartNotFound, CurrencyMismatch, EmptyCart
from modules.carts.repositories.memory_repository import CartMemoryRepository
from modules.carts.services import CartService
from modules.catalog.entities import Catalog, Location, Store
from modules.catalog.exceptions import InsufficientStock, ItemNotFound, ItemUnavailable
from modules.catalog.repositories.memory_repository import (
    CatalogMemoryRepository,
    StoreMemoryRepository,
)
from modules.core.exceptions import BUSINESS_LOGIC, CommerceValidationError, Unauthorized
from modules.orders.channels import OrderChannelHub
from modules.orders.constants import (
    CANCELLATION_KEY,
    DETAILED_STATUS_KEY,
    PAYMENT_KEY,
    RATING_KEY,
    OrderStatus,
    OrderType,
)
from modules.orders.dtos import (
    CreateOrderDTO,
    DirectOrderItemDTO,
    RateOrderDTO,
    UpdateOrderDTO,
)
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.exceptions import (
    InvalidOrderStatus,
    OrderCannotCancel,
    OrderNotFound,
    OrderNotRateable,
    PaymentNotSettled,
)
from modules.orders.patches import replay
from modules.orders.repositories.memory_repository import (
    OrderMemoryRepository,
    PatchEventMemoryRepository,
)
from modules.orders.services import OrderService
from shared.domain.money import Money
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit

OWNER = "user-1"
STRANGER = "user-2"
TIPPING_KEY = "dev.ocp.order.tipping@1.0"


class Clock:
    def __init__(self):
        self.now = timezone.now()

    def __call__(self):
        return self.now

    def advance(self, seconds=1):
        self.now += timedelta(seconds=seconds)


class Recorder:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock():
    return Clock()


@pytest.fixture()
def capability_config():
    return {
        "dev.ocp.cart": {"enabled": True, "lifetime_seconds": 600, "policies": []},
        "dev.ocp.order.direct": {
            "enabled": True,
            "max_items_per_order": 2,
            "allow_guest_orders": False,
            "supported_fulfillment_types": ["pickup", "delivery"],
        },
        "dev.ocp.order.detailed_status": {"enabled": True},
        "dev.ocp.payment.x402_fiat": {"enabled": False},
    }


@pytest.fixture()
def registry(capability_config):
    return build_registry(capability_config)


@pytest.fixture()
def catalogs(catalog_items):
    stores, catalogs = StoreMemoryRepository(), CatalogMemoryRepository()
    stores.create(Store(id="store-1", name="Burger Place", location=Location(address="x")))
    catalogs.create(Catalog(id="menu-1", name="Menu", store_id="store-1", items=catalog_items))
    return stores, catalogs


@pytest.fixture()
def cart_service(catalogs, registry, clock):
    stores, catalog_repository = catalogs
    return CartService(
        CartMemoryRepository(), stores, catalog_repository, registry=registry, clock=clock
    )


@pytest.fixture()
def hub():
    return OrderChannelHub(buffer_size=10)


@pytest.fixture()
def bus():
    return InMemoryEventBus()


@pytest.fixture()
def service(catalogs, cart_service, registry, hub, bus, clock):
    return OrderService(
        OrderMemoryRepository(),
        PatchEventMemoryRepository(),
        cart_service,
        catalogs[1],
        registry=registry,
        hub=hub,
        bus=bus,
        clock=clock,
    )


@pytest.fixture()
def cart(cart_service):
    cart = cart_service.create_cart(CreateCartDTO(store_id="store-1"), OWNER)
    return cart_service.add_item(cart.id, AddCartItemDTO(item_id="burger", quantity=2), OWNER)


@pytest.fixture()
def order(service, cart):
    return service.create_order(
        CreateOrderDTO(order_type=OrderType.FROM_CART, cart_id=cart.id), OWNER
    )


def direct(*items, **fields):
    return CreateOrderDTO(
        order_type=OrderType.DIRECT,
        items=[DirectOrderItemDTO(item_id=i, quantity=q) for i, q in items],
        **fields,
    )


def advance_to(service, clock, order_id, *statuses):
    for status in statuses:
        clock.advance()
        service.update_order(order_id, UpdateOrderDTO(status=status), None, staff=True)


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


class TestCreateFromCart:
    def test_snapshot_of_cart(self, order, cart):
        assert order.status == OrderStatus.PENDING
        assert order.owner_id == OWNER
        assert order.source_cart_id == cart.id
        assert [(i.item_id, i.quantity) for i in order.items] == [("burger", 2)]
        assert order.total == Money(amount="20.00", currency="USD")
        assert order.metadata[DETAILED_STATUS_KEY]["code"] == "pending"
        assert order.metadata[DETAILED_STATUS_KEY]["progress"] == 0
        assert order.event_sequence == 0

    def test_cart_converts_exactly_once(self, service, order, cart):
        with pytest.raises(CartNotFound):
            service.create_order(
                CreateOrderDTO(order_type=OrderType.FROM_CART, cart_id=cart.id), OWNER
            )
        assert len(service.list_orders(OWNER)) == 1

    def test_empty_cart_rejected_and_stays_open(self, service, cart_service):
        empty = cart_service.create_cart(CreateCartDTO(store_id="store-1"), OWNER)
        with pytest.raises(EmptyCart):
            service.create_order(
                CreateOrderDTO(order_type=OrderType.FROM_CART, cart_id=empty.id), OWNER
            )
        assert cart_service.get_cart(empty.id, OWNER).status == "open"

    def test_cart_id_required(self, service):
        with pytest.raises(CommerceValidationError) as exc:
            service.create_order(CreateOrderDTO(order_type=OrderType.FROM_CART), OWNER)
        assert exc.value.errors[0]["field"] == "cart_id"

    def test_delivery_requires_address(self, service, cart):
        dto = CreateOrderDTO(
            order_type=OrderType.FROM_CART, cart_id=cart.id, fulfillment_type="delivery"
        )
        with pytest.raises(CommerceValidationError) as exc:
            service.create_order(dto, OWNER)
        assert exc.value.errors[0]["field"] == "delivery_address"

    def test_without_detailed_status_no_block(
        self, capability_config, catalogs, cart_service, hub, bus, clock, cart
    ):
        capability_config.pop("dev.ocp.order.detailed_status")
        service = OrderService(
            OrderMemoryRepository(),
            PatchEventMemoryRepository(),
            cart_service,
            catalogs[1],
            registry=build_registry(capability_config),
            hub=hub,
            bus=bus,
            clock=clock,
        )
        order = service.create_order(
            CreateOrderDTO(order_type=OrderType.FROM_CART, cart_id=cart.id), OWNER
        )
        assert DETAILED_STATUS_KEY not in order.metadata


class TestCreateDirect:
    def test_prices_from_catalog(self, service):
        order = service.create_order(direct(("burger", 1), ("fries", 2)), OWNER)
        assert order.order_type == OrderType.DIRECT
        assert order.status == OrderStatus.PENDING
        assert [i.cart_item_id for i in order.items] == ["line_1", "line_2"]
        assert order.total == Money(amount="17.00", currency="USD")

    def test_disabled(self, capability_config, catalogs, cart_service, hub, bus, clock):
        capability_config["dev.ocp.order.direct"]["enabled"] = False
        service = OrderService(
            OrderMemoryRepository(),
            PatchEventMemoryRepository(),
            cart_service,
            catalogs[1],
            registry=build_registry(capability_config),
            hub=hub,
            bus=bus,
            clock=clock,
        )
        with pytest.raises(CommerceValidationError) as exc:
            service.create_order(direct(("burger", 1)), OWNER)
        assert exc.value.errors[0]["field"] == "order_type"

    def test_guests_need_permission(self, service):
        with pytest.raises(Unauthorized):
            service.create_order(direct(("burger", 1)), None)

    def test_limits_and_fulfillment_reported_together(self, service):
        dto = direct(("burger", 1), ("fries", 1), ("burger", 1), fulfillment_type="digital")
        with pytest.raises(CommerceValidationError) as exc:
            service.create_order(dto, OWNER)
        assert {e["field"] for e in exc.value.errors} == {"fulfillment_type", "items"}

    def test_items_required(self, service):
        with pytest.raises(CommerceValidationError):
            service.create_order(direct(), OWNER)

    def test_unknown_item_names_its_position(self, service):
        with pytest.raises(ItemNotFound) as exc:
            service.create_order(direct(("burger", 1), ("pizza", 1)), OWNER)
        assert exc.value.errors[0]["field"] == "items[1].item_id"

    def test_unavailable_item(self, service):
        with pytest.raises(ItemUnavailable):
            service.create_order(direct(("milkshake", 1)), OWNER)

    def test_stock(self, service):
        with pytest.raises(InsufficientStock):
            service.create_order(direct(("burger", 6)), OWNER)

    def test_mixed_currencies(self, service):
        with pytest.raises(CurrencyMismatch):
            service.create_order(direct(("burger", 1), ("wine", 1)), OWNER)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:
    def test_happy_path(self, service, order, clock):
        advance_to(service, clock, order.id, "confirmed", "in_transit", "completed")
        current = service.get_order(order.id, OWNER)
        assert current.status == OrderStatus.COMPLETED
        assert current.metadata[DETAILED_STATUS_KEY]["progress"] == 100
        assert current.event_sequence == 3

    def test_skipping_a_state_is_rejected(self, service, order):
        with pytest.raises(InvalidOrderStatus):
            service.update_order(order.id, UpdateOrderDTO(status="completed"), None, staff=True)
        assert service.get_order(order.id, OWNER).status == OrderStatus.PENDING
        assert service.patch_events(order.id) == []

    def test_terminal_states_are_final(self, service, order, clock):
        advance_to(service, clock, order.id, "confirmed", "in_transit", "completed")
        with pytest.raises(InvalidOrderStatus):
            service.update_order(order.id, UpdateOrderDTO(status="pending"), None, staff=True)

    def test_update_validation_reports_everything(self, service, order):
        dto = UpdateOrderDTO(status="cancelled", metadata={"plain": 1})
        with pytest.raises(CommerceValidationError) as exc:
            service.update_order(order.id, dto, None, staff=True)
        assert [e["field"] for e in exc.value.errors] == ["status", "metadata.plain"]

    def test_unknown_status(self, service, order):
        with pytest.raises(CommerceValidationError):
            service.update_order(order.id, UpdateOrderDTO(status="lost"), None, staff=True)

    def test_empty_update(self, service, order):
        with pytest.raises(CommerceValidationError):
            service.update_order(order.id, UpdateOrderDTO(), None, staff=True)

    def test_unknown_order(self, service):
        with pytest.raises(OrderNotFound):
            service.update_order("missing", UpdateOrderDTO(status="confirmed"), None, staff=True)


class TestCancel:
    def test_records_reason(self, service, order, clock):
        clock.advance()
        cancelled = service.cancel_order(order.id, "changed my mind", OWNER)
        assert cancelled.status == OrderStatus.CANCELLED
        assert cancelled.metadata[CANCELLATION_KEY] == {
            "reason": "changed my mind",
            "cancelled_at": clock.now.isoformat(),
        }
        assert cancelled.metadata[DETAILED_STATUS_KEY]["code"] == "cancelled"
        assert cancelled.actions()[0]["id"] == "updates"

    def test_second_cancel_is_rejected(self, service, order):
        service.cancel_order(order.id, None, OWNER)
        with pytest.raises(OrderCannotCancel) as exc:
            service.cancel_order(order.id, None, OWNER)
        assert exc.value.status_code == 403
        assert len(service.patch_events(order.id)) == 1

    def test_only_pending_orders(self, service, order, clock):
        advance_to(service, clock, order.id, "confirmed")
        with pytest.raises(OrderCannotCancel):
            service.cancel_order(order.id, None, OWNER)

    def test_other_principals_cannot_see_it(self, service, order):
        with pytest.raises(OrderNotFound):
            service.cancel_order(order.id, None, STRANGER)


class TestPayment:
    @pytest.fixture()
    def capability_config(self, capability_config):
        capability_config["dev.ocp.payment.x402_fiat"]["enabled"] = True
        return capability_config

    def test_completion_waits_for_settlement(self, service, order, clock):
        advance_to(service, clock, order.id, "confirmed", "in_transit")
        with pytest.raises(PaymentNotSettled):
            service.update_order(order.id, UpdateOrderDTO(status="completed"), None, staff=True)

        settled = {PAYMENT_KEY: {"_version": "1.0", "status": "settled"}}
        completed = service.update_order(
            order.id, UpdateOrderDTO(status="completed", metadata=settled), None, staff=True
        )
        assert completed.status == OrderStatus.COMPLETED


class TestRating:
    def test_completed_order(self, service, order, clock):
        advance_to(service, clock, order.id, "confirmed", "in_transit", "completed")
        rated = service.rate_order(order.id, RateOrderDTO(food=5, comment="great"), OWNER)
        rating = rated.metadata[RATING_KEY]
        assert rating["food"] == 5
        assert rating["comment"] == "great"
        assert "delivery" not in rating
        assert "rated_at" in rating

    def test_not_completed(self, service, order):
        with pytest.raises(OrderNotRateable) as exc:
            service.rate_order(order.id, RateOrderDTO(food=4), OWNER)
        assert exc.value.status_code == 422
        assert exc.value.errors[0]["type"] == BUSINESS_LOGIC

    def test_every_out_of_range_score_is_reported(self, service, order):
        with pytest.raises(CommerceValidationError) as exc:
            service.rate_order(order.id, RateOrderDTO(food=0, delivery=6, restaurant=3), OWNER)
        assert [e["field"] for e in exc.value.errors] == ["food", "delivery"]

    def test_at_least_one_score(self, service, order):
        with pytest.raises(CommerceValidationError):
            service.rate_order(order.id, RateOrderDTO(comment="meh"), OWNER)


# ---------------------------------------------------------------------------
# Patch events
# ---------------------------------------------------------------------------


class TestPatchEvents:
    def test_metadata_update_is_a_single_event(self, service, order, clock):
        clock.advance()
        service.update_order(
            order.id,
            UpdateOrderDTO(status="confirmed", metadata={TIPPING_KEY: {"percentage": 15}}),
            None,
            staff=True,
        )
        events = service.patch_events(order.id)
        assert len(events) == 1
        paths = [op["path"] for op in events[0].operations]
        assert paths[0] == "/status"
        assert "/metadata/dev.ocp.order.tipping@1.0" in paths
        assert "/metadata/dev.ocp.order.detailed_status@1.0" in paths
        assert paths[-1] == "/updated_at"

    def test_no_change_no_event(self, service, order, clock):
        metadata = {TIPPING_KEY: {"percentage": 15}}
        service.update_order(order.id, UpdateOrderDTO(metadata=metadata), None, staff=True)
        clock.advance()
        service.update_order(order.id, UpdateOrderDTO(metadata=metadata), None, staff=True)
        assert [e.sequence for e in service.patch_events(order.id)] == [1]

    def test_null_removes_a_key(self, service, order, clock):
        service.update_order(
            order.id, UpdateOrderDTO(metadata={TIPPING_KEY: {"percentage": 15}}), None, staff=True
        )
        clock.advance()
        service.update_order(order.id, UpdateOrderDTO(metadata={TIPPING_KEY: None}), None, staff=True)
        last = service.patch_events(order.id, after=1)
        assert last[0].operations[0] == {
            "op": "remove",
            "path": "/metadata/dev.ocp.order.tipping@1.0",
        }

    def test_sequences_are_gap_free(self, service, order, clock):
        advance_to(service, clock, order.id, "confirmed")
        with pytest.raises(InvalidOrderStatus):
            service.update_order(order.id, UpdateOrderDTO(status="completed"), None, staff=True)
        advance_to(service, clock, order.id, "in_transit", "completed")
        clock.advance()
        service.rate_order(order.id, RateOrderDTO(food=4), OWNER)
        assert [e.sequence for e in service.patch_events(order.id)] == [1, 2, 3, 4]
        assert [e.sequence for e in service.patch_events(order.id, after=2)] == [3, 4]

    def test_replaying_events_reproduces_the_order(self, service, order, clock):
        snapshot = service.representation(order)
        service.update_order(
            order.id, UpdateOrderDTO(metadata={TIPPING_KEY: {"percentage": 10}}), None, staff=True
        )
        advance_to(service, clock, order.id, "confirmed", "in_transit", "completed")
        clock.advance()
        service.update_order(order.id, UpdateOrderDTO(metadata={TIPPING_KEY: None}), None, staff=True)
        clock.advance()
        service.rate_order(order.id, RateOrderDTO(food=5, delivery=4), OWNER)

        events = [e.operations for e in service.patch_events(order.id)]
        current = service.representation(service.get_order(order.id, OWNER))
        assert replay(snapshot, events) == current

    def test_cancellation_replays_too(self, service, order, clock):
        snapshot = service.representation(order)
        clock.advance()
        service.cancel_order(order.id, "late", OWNER)
        events = [e.operations for e in service.patch_events(order.id)]
        assert replay(snapshot, events) == service.representation(
            service.get_order(order.id, OWNER)
        )

    def test_subscribers_receive_events_after_commit(
        self, service, order, hub, clock, django_capture_on_commit_callbacks
    ):
        subscription = service.subscribe(order.id, OWNER)
        with django_capture_on_commit_callbacks(execute=True):
            advance_to(service, clock, order.id, "confirmed")
        event = subscription.next_event(timeout=0)
        assert event.sequence == 1
        assert event.operations[0] == {"op": "replace", "path": "/status", "value": "confirmed"}

    def test_subscription_starts_after_the_current_sequence(
        self, service, order, hub, clock, django_capture_on_commit_callbacks
    ):
        advance_to(service, clock, order.id, "confirmed")
        subscription = service.subscribe(order.id, OWNER)
        stale = service.patch_events(order.id)[0]
        hub.publish(stale)
        with django_capture_on_commit_callbacks(execute=True):
            advance_to(service, clock, order.id, "in_transit")
        assert subscription.next_event(timeout=0).sequence == 2
        assert subscription.next_event(timeout=0) is None

    def test_subscribe_checks_visibility(self, service, order):
        with pytest.raises(OrderNotFound):
            service.subscribe(order.id, STRANGER)


# ---------------------------------------------------------------------------
# Queries and domain events
# ---------------------------------------------------------------------------


class TestQueries:
    def test_owner_sees_own_orders_only(self, service, order):
        service.create_order(direct(("fries", 1)), STRANGER)
        assert [o.id for o in service.list_orders(OWNER)] == [order.id]
        assert len(service.list_orders(None, staff=True)) == 2

    def test_status_filter(self, service, order, clock):
        other = service.create_order(direct(("fries", 1)), OWNER)
        advance_to(service, clock, other.id, "confirmed")
        assert [o.id for o in service.list_orders(OWNER, status="pending")] == [order.id]

    def test_invalid_status_filter(self, service):
        with pytest.raises(CommerceValidationError):
            service.list_orders(OWNER, status="lost")

    def test_guests_cannot_list(self, service):
        with pytest.raises(Unauthorized):
            service.list_orders(None)

    def test_staff_see_any_order(self, service, order):
        assert service.get_order(order.id, None, staff=True).id == order.id

    def test_foreign_order_looks_missing(self, service, order):
        with pytest.raises(OrderNotFound):
            service.get_order(order.id, STRANGER)


class TestDomainEvents:
    def test_published_after_commit(
        self, service, cart, bus, clock, django_capture_on_commit_callbacks
    ):
        recorder = Recorder()
        for event_class in (OrderCreated, OrderStatusChanged, OrderCancelled):
            bus.subscribe(event_class, recorder)

        with django_capture_on_commit_callbacks(execute=True):
            order = service.create_order(
                CreateOrderDTO(order_type=OrderType.FROM_CART, cart_id=cart.id), OWNER
            )
        with django_capture_on_commit_callbacks(execute=True):
            service.cancel_order(order.id, "oops", OWNER)

        assert [e.event_name for e in recorder.events] == ["OrderCreated", "OrderCancelled"]
        assert recorder.events[1].payload == {"reason": "oops"}

    def test_status_change_payload(self, service, order, bus, clock, django_capture_on_commit_callbacks):
        recorder = Recorder()
        bus.subscribe(OrderStatusChanged, recorder)
        with django_capture_on_commit_callbacks(execute=True):
            advance_to(service, clock, order.id, "confirmed")
        assert recorder.events[0].payload == {"old_status": "pending", "new_status": "confirmed"}
