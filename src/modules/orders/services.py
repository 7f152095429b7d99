"""Order service layer (Use Cases).

This is the order lifecycle engine.  All write operations are atomic:
the service defines the unit-of-work boundary.

Business rules enforced:
- A cart converts into exactly one order: conversion runs inside the
  cart's lock and marks the cart converted in the same transaction.
- Direct orders exist only while ``dev.ocp.order.direct`` is enabled.
- Status transitions follow ``VALID_TRANSITIONS``; cancellation is
  only possible from ``pending`` and only through ``cancel_order``.
- Completion waits for a settled payment while the payment capability
  is enabled.
- Every change of an order's representation emits exactly one patch
  event: persisted with the next per-order sequence number in the same
  transaction, then broadcast to live subscribers after commit.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.capabilities.builtin.common import SUPPORTED_VERSION, VERSION_FIELD
from modules.capabilities.builtin.platform import is_settled
from modules.capabilities.metadata import process_response_payload
from modules.capabilities.registry import CapabilityRegistry, get_registry
from modules.carts.exceptions import CurrencyMismatch
from modules.carts.pricing import compute_totals
from modules.catalog.exceptions import InsufficientStock, ItemNotFound, ItemUnavailable
from modules.core.exceptions import (
    BUSINESS_LOGIC,
    CommerceValidationError,
    Unauthorized,
    violation,
)
from modules.orders.channels import OrderChannelHub, get_hub
from modules.orders.constants import (
    CANCELLATION_KEY,
    DETAILED_STATUS_CAPABILITY,
    DETAILED_STATUS_KEY,
    ORDER_DIRECT_CAPABILITY,
    PAYMENT_CAPABILITY,
    PAYMENT_KEY,
    RATING_FIELDS,
    RATING_KEY,
    RATING_MAX,
    RATING_MIN,
    STATUS_PROGRESS,
    FulfillmentType,
    OrderStatus,
    OrderType,
)
from modules.orders.dtos import OrderOutputDTO
from modules.orders.entities import Order, OrderItem, PatchEvent
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.exceptions import (
    InvalidOrderStatus,
    OrderCannotCancel,
    OrderNotFound,
    OrderNotRateable,
    PaymentNotSettled,
)
from modules.orders.patches import diff_representations
from shared.domain.events import DomainEvent, DomainEventMixin
from shared.infrastructure.bus import event_bus

if TYPE_CHECKING:
    from modules.carts.services import CartService
    from modules.catalog.repositories.interfaces import ICatalogRepository
    from modules.orders.channels import Subscription
    from modules.orders.dtos import CreateOrderDTO, RateOrderDTO, UpdateOrderDTO
    from modules.orders.repositories.interfaces import IOrderRepository, IPatchEventRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

Mutation = Callable[[Order, datetime], Order]


class OrderService(DomainEventMixin):
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        event_repository: IPatchEventRepository,
        cart_service: CartService,
        catalog_repository: ICatalogRepository,
        registry: Optional[CapabilityRegistry] = None,
        hub: Optional[OrderChannelHub] = None,
        bus: Optional[IEventBus] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._orders = order_repository
        self._events = event_repository
        self._carts = cart_service
        self._catalogs = catalog_repository
        self._registry = registry if registry is not None else get_registry()
        self._hub = hub if hub is not None else get_hub()
        self._bus = bus or event_bus
        self._clock = clock or timezone.now
        self._tax_rate = Decimal(str(settings.COMMERCE.get("TAX_RATE", "0")))

    # ------------------------------------------------------------------
    # Representation
    # ------------------------------------------------------------------

    def representation(self, order: Order) -> Dict[str, Any]:
        """The order exactly as ``GET /orders/{id}`` returns it."""
        return process_response_payload(
            OrderOutputDTO.from_entity(order).model_dump(mode="json"), self._registry
        )

    def _status_block(self, status: str, now: datetime) -> Dict[str, Any]:
        return {
            VERSION_FIELD: SUPPORTED_VERSION,
            "code": str(status),
            "progress": STATUS_PROGRESS[status],
            "description": OrderStatus(status).label,
            "updated_at": now.isoformat(),
        }

    def _with_status_block(
        self, metadata: Dict[str, Any], status: str, now: datetime
    ) -> Dict[str, Any]:
        if self._registry.is_enabled(DETAILED_STATUS_CAPABILITY):
            metadata[DETAILED_STATUS_KEY] = self._status_block(status, now)
        return metadata

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _require_visible(
        self,
        order: Optional[Order],
        order_id: str,
        principal_id: Optional[str],
        staff: bool,
    ) -> Order:
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        if not staff and order.owner_id is not None and order.owner_id != principal_id:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _fulfillment_errors(
        self, dto: CreateOrderDTO, supported: Optional[List[str]]
    ) -> List[Dict[str, Any]]:
        errors = []
        allowed = supported or list(FulfillmentType.values)
        if dto.fulfillment_type is not None and dto.fulfillment_type not in allowed:
            errors.append(
                violation(
                    f"Must be one of: {', '.join(allowed)}.",
                    field="fulfillment_type",
                    value=dto.fulfillment_type,
                )
            )
        if dto.fulfillment_type == FulfillmentType.DELIVERY and not dto.delivery_address:
            errors.append(
                violation("Required for delivery orders.", field="delivery_address")
            )
        return errors

    # ------------------------------------------------------------------
    # Domain events
    # ------------------------------------------------------------------

    def _publish_after_commit(self, event: DomainEvent) -> None:
        self.add_domain_event(event)
        transaction.on_commit(self._flush_domain_events)

    def _flush_domain_events(self) -> None:
        events = self.domain_events
        self.clear_domain_events()
        self._bus.publish_all(events)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO, principal_id: Optional[str]) -> Order:
        """Create a pending order from a cart or from submitted items.

        Raises:
            CommerceValidationError: malformed request, or direct orders
                while the capability is disabled.
            CartNotFound / CartExpired / EmptyCart: the cart cannot convert.
            ItemNotFound / ItemUnavailable / InsufficientStock: an item
                can no longer be sold.
        """
        if dto.order_type == OrderType.FROM_CART:
            order = self._create_from_cart(dto, principal_id)
        else:
            order = self._create_direct(dto, principal_id)

        logger.info(
            "order.created",
            order_id=order.id,
            order_type=OrderType(order.order_type).value,
            item_count=len(order.items),
            total=str(order.total.amount),
        )
        self._publish_after_commit(
            OrderCreated(
                aggregate_id=order.id,
                payload={"order_type": OrderType(order.order_type).value},
            )
        )
        return order

    def _create_from_cart(self, dto: CreateOrderDTO, principal_id: Optional[str]) -> Order:
        errors = self._fulfillment_errors(dto, None)
        if not dto.cart_id:
            errors.append(violation("Required for orders created from a cart.", field="cart_id"))
        if errors:
            raise CommerceValidationError(errors=errors)

        with self._carts.checkout(dto.cart_id, principal_id) as cart:
            now = self._clock()
            metadata = self._with_status_block(dict(dto.metadata), OrderStatus.PENDING, now)
            order = self._orders.create(
                Order(
                    owner_id=cart.owner_id,
                    order_type=OrderType.FROM_CART,
                    source_cart_id=cart.id,
                    items=[OrderItem.model_validate(line.model_dump()) for line in cart.items],
                    total=cart.total,
                    fulfillment_type=dto.fulfillment_type,
                    delivery_address=dto.delivery_address,
                    notes=dto.notes,
                    metadata=metadata,
                    created_at=now,
                    updated_at=now,
                )
            )
        return order

    def _create_direct(self, dto: CreateOrderDTO, principal_id: Optional[str]) -> Order:
        if not self._registry.is_enabled(ORDER_DIRECT_CAPABILITY):
            raise CommerceValidationError.for_field(
                "order_type", "Direct orders are not supported.", dto.order_type.value
            )
        config = self._registry.get_config(ORDER_DIRECT_CAPABILITY) or {}
        if principal_id is None and config.get("allow_guest_orders") is not True:
            raise Unauthorized("Direct orders require an authenticated principal.")

        errors = self._fulfillment_errors(dto, config.get("supported_fulfillment_types"))
        max_items = config.get("max_items_per_order")
        if not dto.items:
            errors.append(violation("Items are required for direct orders.", field="items"))
        elif max_items and len(dto.items) > max_items:
            errors.append(
                violation(
                    f"At most {max_items} items per order.",
                    field="items",
                    value=len(dto.items),
                )
            )
        if errors:
            raise CommerceValidationError(errors=errors)

        sold = {item.id: (catalog, item) for catalog, item in self._catalogs.all_items()}
        lines: List[OrderItem] = []
        for index, requested in enumerate(dto.items):
            found = sold.get(requested.item_id)
            if found is None:
                raise ItemNotFound(
                    f"Item {requested.item_id} not found.",
                    errors=[
                        violation(
                            "Unknown item.",
                            field=f"items[{index}].item_id",
                            value=requested.item_id,
                        )
                    ],
                )
            catalog, item = found
            if not item.available:
                raise ItemUnavailable(f"Item {item.id} is not available.")
            if item.stock is not None and requested.quantity > item.stock:
                raise InsufficientStock(
                    f"Item {item.id}: requested {requested.quantity}, available {item.stock}."
                )
            if lines and item.price.currency != lines[0].price.currency:
                raise CurrencyMismatch(
                    f"Item {item.id} is priced in {item.price.currency}, "
                    f"order is in {lines[0].price.currency}."
                )
            lines.append(
                OrderItem(
                    cart_item_id=f"line_{index + 1}",
                    item_id=item.id,
                    catalog_id=catalog.id,
                    name=item.name,
                    quantity=requested.quantity,
                    price=item.price,
                    notes=requested.notes,
                    customizations=requested.customizations,
                )
            )

        now = self._clock()
        totals = compute_totals(lines, lines[0].price.currency, None, self._tax_rate)
        metadata = self._with_status_block(dict(dto.metadata), OrderStatus.PENDING, now)
        return self._orders.create(
            Order(
                owner_id=principal_id,
                order_type=OrderType.DIRECT,
                items=lines,
                total=totals.total,
                fulfillment_type=dto.fulfillment_type,
                delivery_address=dto.delivery_address,
                notes=dto.notes,
                metadata=metadata,
                created_at=now,
                updated_at=now,
            )
        )

    def _apply(
        self,
        order_id: str,
        mutate: Mutation,
        principal_id: Optional[str],
        staff: bool,
    ) -> Tuple[Order, Order]:
        """Run one mutation under the order lock and emit its patch event.

        Returns the order before and after the mutation.
        """
        with self._orders.locked(order_id) as order:
            order = self._require_visible(order, order_id, principal_id, staff)
            now = self._clock()
            before = self.representation(order)
            updated = mutate(order, now)
            operations = diff_representations(before, self.representation(updated))
            if not operations:
                return order, order

            sequence = order.event_sequence + 1
            saved = self._orders.update(updated.model_copy(update={"event_sequence": sequence}))
            event = self._events.create(
                PatchEvent(
                    order_id=saved.id,
                    sequence=sequence,
                    operations=operations,
                    created_at=now,
                )
            )

        transaction.on_commit(lambda: self._hub.publish(event))
        logger.info(
            "order.patch_emitted",
            order_id=saved.id,
            sequence=sequence,
            operation_count=len(operations),
        )
        return order, saved

    @transaction.atomic
    def update_order(
        self, order_id: str, dto: UpdateOrderDTO, principal_id: Optional[str], staff: bool
    ) -> Order:
        """Move an order along the state machine and/or change its metadata.

        Both changes land in the same patch event.

        Raises:
            OrderNotFound: order does not exist.
            CommerceValidationError: unknown status, a cancellation request,
                or metadata keys without a ``@version`` suffix.
            InvalidOrderStatus: transition is not allowed.
            PaymentNotSettled: completion before settlement.
        """
        errors = []
        if dto.status is None and dto.metadata is None:
            errors.append(violation("Provide status and/or metadata.", field="status"))
        if dto.status == OrderStatus.CANCELLED:
            errors.append(
                violation(
                    "Use the cancel action for cancellations.", field="status", value=dto.status
                )
            )
        elif dto.status is not None and dto.status not in OrderStatus.values:
            errors.append(
                violation(
                    f"Must be one of: {', '.join(OrderStatus.values)}.",
                    field="status",
                    value=dto.status,
                )
            )
        for key in dto.metadata or {}:
            if "@" not in key:
                errors.append(
                    violation(
                        "Metadata keys must be '<namespace>@<version>'.",
                        field=f"metadata.{key}",
                    )
                )
        if errors:
            raise CommerceValidationError(errors=errors)

        def mutate(order: Order, now: datetime) -> Order:
            metadata = dict(order.metadata)
            for key, value in (dto.metadata or {}).items():
                if value is None:
                    metadata.pop(key, None)
                else:
                    metadata[key] = value
            changes: Dict[str, Any] = {"updated_at": now}

            if dto.status is not None:
                if not order.can_transition_to(dto.status):
                    logger.warning(
                        "order.invalid_transition",
                        order_id=order.id,
                        current_status=OrderStatus(order.status).value,
                        new_status=dto.status,
                    )
                    raise InvalidOrderStatus(
                        f"Cannot transition from {OrderStatus(order.status).value} "
                        f"to {dto.status}."
                    )
                if (
                    dto.status == OrderStatus.COMPLETED
                    and self._registry.is_enabled(PAYMENT_CAPABILITY)
                    and not is_settled(metadata.get(PAYMENT_KEY))
                ):
                    raise PaymentNotSettled(f"Order {order.id} payment is not settled.")
                changes["status"] = OrderStatus(dto.status)
                metadata = self._with_status_block(metadata, dto.status, now)

            changes["metadata"] = metadata
            return order.model_copy(update=changes)

        previous, saved = self._apply(order_id, mutate, principal_id, staff)
        if previous.status != saved.status:
            logger.info(
                "order.status_updated",
                order_id=saved.id,
                old_status=OrderStatus(previous.status).value,
                new_status=OrderStatus(saved.status).value,
            )
            self._publish_after_commit(
                OrderStatusChanged(
                    aggregate_id=saved.id,
                    payload={
                        "old_status": OrderStatus(previous.status).value,
                        "new_status": OrderStatus(saved.status).value,
                    },
                )
            )
        return saved

    @transaction.atomic
    def cancel_order(
        self,
        order_id: str,
        reason: Optional[str],
        principal_id: Optional[str],
        staff: bool = False,
    ) -> Order:
        """Cancel a pending order, recording ``{reason, cancelled_at}``.

        Raises:
            OrderNotFound: order does not exist.
            OrderCannotCancel: the order is not pending, including when it
                was already cancelled.
        """

        def mutate(order: Order, now: datetime) -> Order:
            if order.status != OrderStatus.PENDING:
                logger.warning(
                    "order.cancel_not_allowed",
                    order_id=order.id,
                    current_status=OrderStatus(order.status).value,
                )
                raise OrderCannotCancel(
                    f"Order in status {OrderStatus(order.status).value} cannot be cancelled."
                )
            metadata = {
                **order.metadata,
                CANCELLATION_KEY: {"reason": reason, "cancelled_at": now.isoformat()},
            }
            metadata = self._with_status_block(metadata, OrderStatus.CANCELLED, now)
            return order.model_copy(
                update={"status": OrderStatus.CANCELLED, "metadata": metadata, "updated_at": now}
            )

        _, saved = self._apply(order_id, mutate, principal_id, staff)
        logger.info("order.cancelled", order_id=saved.id)
        self._publish_after_commit(
            OrderCancelled(aggregate_id=saved.id, payload={"reason": reason})
        )
        return saved

    @transaction.atomic
    def rate_order(
        self,
        order_id: str,
        dto: RateOrderDTO,
        principal_id: Optional[str],
        staff: bool = False,
    ) -> Order:
        """Attach ratings to a completed order.

        Every out-of-range score is reported, not just the first.
        """
        errors = []
        scores = {field: getattr(dto, field) for field in RATING_FIELDS}
        for field, score in scores.items():
            if score is not None and not RATING_MIN <= score <= RATING_MAX:
                errors.append(
                    violation(
                        f"Rating must be between {RATING_MIN} and {RATING_MAX}.",
                        field=field,
                        value=score,
                    )
                )
        if all(score is None for score in scores.values()):
            errors.append(
                violation("At least one rating is required.", field=", ".join(RATING_FIELDS))
            )
        if errors:
            raise CommerceValidationError(errors=errors)

        def mutate(order: Order, now: datetime) -> Order:
            if order.status != OrderStatus.COMPLETED:
                raise OrderNotRateable(
                    errors=[
                        violation(
                            "Can only rate completed orders.",
                            type=BUSINESS_LOGIC,
                            resource_id=order.id,
                        )
                    ]
                )
            rating = {k: v for k, v in dto.model_dump().items() if v is not None}
            rating["rated_at"] = now.isoformat()
            metadata = {**order.metadata, RATING_KEY: rating}
            return order.model_copy(update={"metadata": metadata, "updated_at": now})

        _, saved = self._apply(order_id, mutate, principal_id, staff)
        logger.info("order.rated", order_id=saved.id)
        return saved

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(
        self, order_id: str, principal_id: Optional[str], staff: bool = False
    ) -> Order:
        """Raises ``OrderNotFound`` for unknown ids and other principals' orders."""
        return self._require_visible(
            self._orders.get_by_id(order_id), order_id, principal_id, staff
        )

    def list_orders(
        self, principal_id: Optional[str], staff: bool = False, status: Optional[str] = None
    ) -> List[Order]:
        filters: Dict[str, Any] = {}
        if status is not None:
            if status not in OrderStatus.values:
                raise CommerceValidationError.for_field(
                    "status", f"Must be one of: {', '.join(OrderStatus.values)}.", status
                )
            filters["status"] = status
        if not staff:
            if principal_id is None:
                raise Unauthorized("Listing orders requires an authenticated principal.")
            filters["owner_id"] = principal_id
        return self._orders.list(filters)

    def subscribe(
        self, order_id: str, principal_id: Optional[str], staff: bool = False
    ) -> Subscription:
        """Attach a live subscriber; it sees only events after the current sequence."""
        order = self.get_order(order_id, principal_id, staff)
        return self._hub.subscribe(order.id, after=order.event_sequence)

    def patch_events(self, order_id: str, after: int = 0) -> List[PatchEvent]:
        return self._events.list_for_order(order_id, after)
