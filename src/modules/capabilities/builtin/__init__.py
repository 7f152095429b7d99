"""Built-in capability implementations, one factory per known kind.

A factory receives the descriptor and the namespace's configuration
entry and returns the ``CapabilityImplementation`` to register.
"""

from __future__ import annotations

from typing import Any, Callable, Dict

from modules.capabilities.base import CapabilityDescriptor, CapabilityImplementation
from modules.capabilities.builtin import (
    cart,
    i18n,
    orders,
    platform,
    products,
    stores,
    users,
)
from modules.capabilities.kinds import CapabilityKind

Factory = Callable[[CapabilityDescriptor, Dict[str, Any]], CapabilityImplementation]

BUILTIN_CAPABILITIES: Dict[CapabilityKind, Factory] = {
    CapabilityKind.CART: cart.build,
    CapabilityKind.ORDER_DIRECT: orders.build_direct_order,
    CapabilityKind.ORDER_DETAILED_STATUS: orders.build_detailed_status,
    CapabilityKind.ORDER_SHIPMENT_TRACKING: orders.build_shipment_tracking,
    CapabilityKind.ORDER_TIPPING: orders.build_tipping,
    CapabilityKind.PRODUCT_VARIANTS: products.build_variants,
    CapabilityKind.PRODUCT_SEARCH: products.build_search,
    CapabilityKind.PRODUCT_RICH_INFO: products.build_rich_info,
    CapabilityKind.STORE_INFO: stores.build,
    CapabilityKind.I18N: i18n.build,
    CapabilityKind.RESOURCE_VERSIONING: platform.build_versioning,
    CapabilityKind.PAYMENT_X402_FIAT: platform.build_payment,
    CapabilityKind.PROMOTIONS_DISCOVERABLE: platform.build_promotions,
    CapabilityKind.USER_PROFILE: users.build,
}
