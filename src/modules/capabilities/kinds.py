from __future__ import annotations

from enum import Enum


class CapabilityKind(str, Enum):
    """Closed set of capability namespaces this server knows how to run.

    Any other namespace declared in configuration maps to ``UNKNOWN``: it
    is registered and discoverable, validates everything and processes
    nothing.
    """

    CART = "dev.ocp.cart"
    ORDER_DIRECT = "dev.ocp.order.direct"
    ORDER_DETAILED_STATUS = "dev.ocp.order.detailed_status"
    ORDER_SHIPMENT_TRACKING = "dev.ocp.order.shipment_tracking"
    ORDER_TIPPING = "dev.ocp.order.tipping"
    PRODUCT_VARIANTS = "dev.ocp.product.variants"
    PRODUCT_SEARCH = "dev.ocp.product.search"
    PRODUCT_RICH_INFO = "dev.ocp.product.rich_info"
    STORE_INFO = "dev.ocp.store.info"
    I18N = "dev.ocp.i18n"
    RESOURCE_VERSIONING = "dev.ocp.resource.versioning"
    PAYMENT_X402_FIAT = "dev.ocp.payment.x402_fiat"
    PROMOTIONS_DISCOVERABLE = "dev.ocp.promotions.discoverable"
    USER_PROFILE = "dev.ocp.user.profile"
    UNKNOWN = "unknown"

    @classmethod
    def from_namespace(cls, namespace: str) -> CapabilityKind:
        try:
            kind = cls(namespace)
        except ValueError:
            return cls.UNKNOWN
        return kind

    @property
    def schema_path(self) -> str:
        """``dev.ocp.order.direct`` -> ``order/direct``."""
        return "/".join(self.value.split(".")[2:])


def namespace_of(key: str) -> str:
    """Namespace part of a metadata key (``dev.ocp.cart@1.0`` -> ``dev.ocp.cart``)."""
    return key.split("@", 1)[0]


def version_of(key: str) -> str | None:
    _, sep, version = key.partition("@")
    return version if sep else None
