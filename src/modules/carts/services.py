"""Cart service layer (Use Cases).

Every cart mutation is a read-modify-write of the whole cart performed
inside ``ICartRepository.locked``: the cart is re-read under the lock,
the change is applied to a copy, totals are recomputed, policies are
checked and only then is the copy written back.  Two concurrent
additions to the same cart therefore never lose one another.

Rules enforced on every mutation:

* the cart must be open, visible to the principal and within its
  lifetime (``CartNotFound`` / ``CartExpired`` otherwise);
* ``expiration`` and ``max_items`` policies against the current cart
  (``max_items`` only when a line is being added);
* ``max_value`` policies against the proposed cart, so no mutation can
  push the total over its ceiling.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Optional

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone
from pydantic import ValidationError

from modules.capabilities.builtin.common import SUPPORTED_VERSION, VERSION_FIELD
from modules.capabilities.exceptions import CapabilityConfigurationError
from modules.capabilities.kinds import namespace_of
from modules.capabilities.registry import CapabilityRegistry, get_registry
from modules.carts.constants import CART_CAPABILITY, CART_METADATA_KEY, CartStatus
from modules.carts.entities import Cart, CartItem, CartPolicy, PolicyType
from modules.carts.exceptions import (
    CartExpired,
    CartItemNotFound,
    CartNotFound,
    CurrencyMismatch,
    EmptyCart,
    InvalidPromotion,
    PolicyViolation,
)
from modules.carts.policies import PolicyCurrencyMismatch, check_policies, parse_policies
from modules.carts.pricing import reprice, resolve_promotion
from modules.catalog.entities import CatalogItem
from modules.catalog.exceptions import (
    InsufficientStock,
    ItemNotFound,
    ItemUnavailable,
    StoreNotFound,
)
from modules.core.exceptions import BUSINESS_LOGIC, CommerceValidationError, violation
from modules.core.models import new_id
from shared.domain.money import Money

if TYPE_CHECKING:
    from modules.carts.dtos import (
        AddCartItemDTO,
        ApplyPromotionDTO,
        CreateCartDTO,
        UpdateCartItemDTO,
    )
    from modules.carts.repositories.interfaces import ICartRepository
    from modules.catalog.repositories.interfaces import ICatalogRepository, IStoreRepository

logger = structlog.get_logger(__name__)


class CartService:
    """Application service for Cart use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        cart_repository: ICartRepository,
        store_repository: IStoreRepository,
        catalog_repository: ICatalogRepository,
        registry: Optional[CapabilityRegistry] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._carts = cart_repository
        self._stores = store_repository
        self._catalogs = catalog_repository
        self._registry = registry if registry is not None else get_registry()
        self._clock = clock or timezone.now

        commerce = settings.COMMERCE
        self._currency = commerce.get("DEFAULT_CURRENCY", "USD")
        self._tax_rate = Decimal(str(commerce.get("TAX_RATE", "0")))
        self._promotions = commerce.get("PROMOTIONS", {})
        self._default_lifetime = int(commerce.get("CART_LIFETIME_SECONDS", 3600))

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def _cart_config(self) -> Optional[Dict[str, Any]]:
        if not self._registry.is_enabled(CART_CAPABILITY):
            return None
        return self._registry.get_config(CART_CAPABILITY) or {}

    def _lifetime_seconds(self, config: Optional[Dict[str, Any]]) -> int:
        if config and config.get("lifetime_seconds"):
            return int(config["lifetime_seconds"])
        return self._default_lifetime

    def _effective_policies(
        self, config: Dict[str, Any], requested: Optional[Dict[str, Any]]
    ) -> List[CartPolicy]:
        """Server policies, then derived ceilings, then client-requested ones."""
        try:
            policies = parse_policies(config.get("policies", []))
            if config.get("max_items"):
                policies.append(
                    CartPolicy(type=PolicyType.MAX_ITEMS, value=int(config["max_items"]))
                )
            if config.get("max_value"):
                policies.append(
                    CartPolicy.model_validate(
                        {"type": PolicyType.MAX_VALUE.value, "value": config["max_value"]}
                    )
                )
        except ValidationError as exc:
            raise CapabilityConfigurationError(f"Invalid cart policy configuration: {exc}") from exc

        if requested and requested.get("policies"):
            try:
                policies.extend(parse_policies(requested["policies"]))
            except ValidationError as exc:
                raise CommerceValidationError.for_field(
                    f"metadata.{CART_METADATA_KEY}.policies", str(exc)
                ) from exc
        return policies

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _require_open(
        self,
        cart: Optional[Cart],
        cart_id: str,
        principal_id: Optional[str],
        now: datetime,
    ) -> Cart:
        if cart is None or cart.status == CartStatus.CONVERTED:
            raise CartNotFound(f"Cart {cart_id} not found.")
        if cart.owner_id is not None and cart.owner_id != principal_id:
            raise CartNotFound(f"Cart {cart_id} not found.")
        if cart.is_expired(now):
            logger.info("cart.access_expired", cart_id=cart_id)
            raise CartExpired(f"Cart {cart_id} has expired.")
        return cart

    def _enforce_policies(
        self, current: Cart, proposed: Cart, now: datetime, adding: bool
    ) -> None:
        guards = [
            p
            for p in current.policies
            if p.type is PolicyType.EXPIRATION or (adding and p.type is PolicyType.MAX_ITEMS)
        ]
        ceilings = [p for p in current.policies if p.type is PolicyType.MAX_VALUE]
        try:
            found = check_policies(current, guards, now) or check_policies(proposed, ceilings, now)
        except PolicyCurrencyMismatch as exc:
            raise CurrencyMismatch(str(exc)) from exc
        if found is not None:
            policy, message = found
            logger.info(
                "cart.policy_violated", cart_id=current.id, policy=policy.type.value
            )
            raise PolicyViolation(
                detail=message,
                errors=[violation(message, type=BUSINESS_LOGIC, resource_id=current.id)],
            )

    def _check_stock(
        self,
        cart: Cart,
        item: CatalogItem,
        quantity: int,
        excluding: Optional[str] = None,
    ) -> None:
        if item.stock is None:
            return
        reserved = sum(
            line.quantity
            for line in cart.items
            if line.item_id == item.id and line.cart_item_id != excluding
        )
        if reserved + quantity > item.stock:
            raise InsufficientStock(
                f"Item {item.id}: requested {reserved + quantity}, available {item.stock}.",
                errors=[
                    violation(
                        "Insufficient stock.",
                        field="quantity",
                        value=quantity,
                        type=BUSINESS_LOGIC,
                        resource_id=item.id,
                    )
                ],
            )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_cart(self, dto: CreateCartDTO, principal_id: Optional[str]) -> Cart:
        if self._stores.get_by_id(dto.store_id) is None:
            raise StoreNotFound(
                f"Store {dto.store_id} not found.",
                errors=[violation("Unknown store.", field="store_id", value=dto.store_id)],
            )

        now = self._clock()
        config = self._cart_config()
        lifetime = self._lifetime_seconds(config)
        metadata = dict(dto.metadata)
        policies: List[CartPolicy] = []

        if config is not None:
            requested = None
            for key in [k for k in metadata if namespace_of(k) == CART_CAPABILITY]:
                requested = metadata.pop(key)
            policies = self._effective_policies(config, requested)
            metadata[CART_METADATA_KEY] = {
                VERSION_FIELD: SUPPORTED_VERSION,
                "lifetime_seconds": lifetime,
                "allow_guest_checkout": config.get("allow_guest_checkout") is True,
                "policies": [p.to_metadata() for p in policies],
                "expires_at": (now + timedelta(seconds=lifetime)).isoformat(),
            }

        zero = Money.zero(self._currency)
        cart = self._carts.create(
            Cart(
                store_id=dto.store_id,
                owner_id=principal_id,
                currency=self._currency,
                policies=policies,
                subtotal=zero,
                discount=zero,
                tax=zero,
                total=zero,
                lifetime_seconds=lifetime,
                metadata=metadata,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(
            "cart.created",
            cart_id=cart.id,
            store_id=cart.store_id,
            guest=principal_id is None,
            policy_count=len(policies),
        )
        return cart

    @transaction.atomic
    def add_item(
        self, cart_id: str, dto: AddCartItemDTO, principal_id: Optional[str]
    ) -> Cart:
        log = logger.bind(cart_id=cart_id, item_id=dto.item_id)
        with self._carts.locked(cart_id) as cart:
            now = self._clock()
            cart = self._require_open(cart, cart_id, principal_id, now)

            found = self._catalogs.find_item(cart.store_id, dto.item_id)
            if found is None:
                raise ItemNotFound(
                    f"Item {dto.item_id} not found.",
                    errors=[violation("Unknown item.", field="item_id", value=dto.item_id)],
                )
            catalog, item = found
            if not item.available:
                raise ItemUnavailable(f"Item {item.id} is not available.")
            if item.price.currency != cart.currency:
                raise CurrencyMismatch(
                    f"Item {item.id} is priced in {item.price.currency}, "
                    f"cart is in {cart.currency}."
                )
            self._check_stock(cart, item, dto.quantity)

            line = CartItem(
                cart_item_id=new_id(),
                item_id=item.id,
                catalog_id=catalog.id,
                name=item.name,
                quantity=dto.quantity,
                price=item.price,
                notes=dto.notes,
                customizations=dto.customizations,
            )
            proposed = reprice(cart, self._tax_rate, items=[*cart.items, line], updated_at=now)
            self._enforce_policies(cart, proposed, now, adding=True)
            saved = self._carts.update(proposed)

        log.info("cart.item_added", cart_item_id=line.cart_item_id, quantity=dto.quantity)
        return saved

    @transaction.atomic
    def update_item(
        self,
        cart_id: str,
        cart_item_id: str,
        dto: UpdateCartItemDTO,
        principal_id: Optional[str],
    ) -> Cart:
        with self._carts.locked(cart_id) as cart:
            now = self._clock()
            cart = self._require_open(cart, cart_id, principal_id, now)
            line = cart.find_item(cart_item_id)
            if line is None:
                raise CartItemNotFound(f"Cart item {cart_item_id} not found.")

            changes = {field: getattr(dto, field) for field in dto.model_fields_set}
            if changes.get("quantity") is None:
                changes.pop("quantity", None)
            if "quantity" in changes:
                found = self._catalogs.find_item(cart.store_id, line.item_id)
                if found is not None:
                    self._check_stock(cart, found[1], changes["quantity"], excluding=cart_item_id)

            updated_line = line.model_copy(update=changes)
            items = [updated_line if i.cart_item_id == cart_item_id else i for i in cart.items]
            proposed = reprice(cart, self._tax_rate, items=items, updated_at=now)
            self._enforce_policies(cart, proposed, now, adding=False)
            saved = self._carts.update(proposed)

        logger.info("cart.item_updated", cart_id=cart_id, cart_item_id=cart_item_id)
        return saved

    @transaction.atomic
    def remove_item(
        self, cart_id: str, cart_item_id: str, principal_id: Optional[str]
    ) -> Cart:
        with self._carts.locked(cart_id) as cart:
            now = self._clock()
            cart = self._require_open(cart, cart_id, principal_id, now)
            if cart.find_item(cart_item_id) is None:
                raise CartItemNotFound(f"Cart item {cart_item_id} not found.")

            items = [i for i in cart.items if i.cart_item_id != cart_item_id]
            proposed = reprice(cart, self._tax_rate, items=items, updated_at=now)
            self._enforce_policies(cart, proposed, now, adding=False)
            saved = self._carts.update(proposed)

        logger.info("cart.item_removed", cart_id=cart_id, cart_item_id=cart_item_id)
        return saved

    @transaction.atomic
    def apply_promotion(
        self, cart_id: str, dto: ApplyPromotionDTO, principal_id: Optional[str]
    ) -> Cart:
        with self._carts.locked(cart_id) as cart:
            now = self._clock()
            cart = self._require_open(cart, cart_id, principal_id, now)
            promotion = resolve_promotion(dto.type.value, dto.value, self._promotions)
            if promotion is None:
                logger.info("cart.promotion_rejected", cart_id=cart_id, code=dto.value)
                raise InvalidPromotion(dto.value)

            proposed = reprice(cart, self._tax_rate, promotion=promotion, updated_at=now)
            self._enforce_policies(cart, proposed, now, adding=False)
            saved = self._carts.update(proposed)

        logger.info("cart.promotion_applied", cart_id=cart_id, code=promotion.code)
        return saved

    @contextmanager
    def checkout(self, cart_id: str, principal_id: Optional[str]) -> Iterator[Cart]:
        """Hold an open cart for conversion into an order.

        Yields the locked cart after checking it is non-empty and every
        item is still sold.  When the block completes the cart is marked
        converted before the lock is released; if the block raises, the
        cart stays open.
        """
        with self._carts.locked(cart_id) as cart:
            now = self._clock()
            cart = self._require_open(cart, cart_id, principal_id, now)
            if not cart.items:
                raise EmptyCart(f"Cart {cart_id} has no items.")

            unavailable = []
            for line in cart.items:
                found = self._catalogs.find_item(cart.store_id, line.item_id)
                if found is None or not found[1].available:
                    unavailable.append(
                        violation(
                            f"Item {line.item_id} is no longer available.",
                            field="items",
                            type=BUSINESS_LOGIC,
                            resource_id=line.item_id,
                        )
                    )
            if unavailable:
                raise ItemUnavailable(errors=unavailable)
            self._enforce_policies(cart, cart, now, adding=False)

            yield cart

            self._carts.update(
                cart.model_copy(update={"status": CartStatus.CONVERTED, "updated_at": now})
            )
        logger.info("cart.converted", cart_id=cart_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_cart(self, cart_id: str, principal_id: Optional[str]) -> Cart:
        return self._require_open(
            self._carts.get_by_id(cart_id), cart_id, principal_id, self._clock()
        )

    def purge_expired(self, retention_seconds: int) -> Dict[str, int]:
        now = self._clock()
        expired = self._carts.expire_stale(now)
        purged = self._carts.purge(now - timedelta(seconds=retention_seconds))
        logger.info("cart.purge_completed", expired=expired, purged=purged)
        return {"expired": expired, "purged": purged}
