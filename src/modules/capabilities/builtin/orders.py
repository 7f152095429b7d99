"""Order capabilities: direct orders, detailed status, shipment tracking
and tipping.

None of them contribute routes; they only validate and normalize the
metadata blocks clients and staff attach to orders.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from modules.capabilities.base import CapabilityDescriptor, CapabilityImplementation
from modules.capabilities.builtin.common import is_optional_str, is_versioned_block
from modules.capabilities.kinds import CapabilityKind

DIRECT_ORDER_TYPE = "direct"

TRACKING_URL_TEMPLATES = {
    "fedex": "https://www.fedex.com/fedextrack/?trknbr={number}",
    "ups": "https://www.ups.com/track?tracknum={number}",
    "usps": "https://tools.usps.com/go/TrackConfirmAction?tLabels={number}",
}


def _is_money(value: Any) -> bool:
    if not isinstance(value, dict) or not isinstance(value.get("currency"), str):
        return False
    try:
        Decimal(str(value.get("amount")))
    except InvalidOperation:
        return False
    return True


# ---------------------------------------------------------------------------
# dev.ocp.order.direct
# ---------------------------------------------------------------------------


def validate_direct_order(value: Any) -> bool:
    if not is_versioned_block(value):
        return False
    return value.get("order_type", DIRECT_ORDER_TYPE) == DIRECT_ORDER_TYPE


def process_direct_order(value: Dict[str, Any]) -> Dict[str, Any]:
    value.setdefault("order_type", DIRECT_ORDER_TYPE)
    return value


def build_direct_order(
    descriptor: CapabilityDescriptor, config: Dict[str, Any]
) -> CapabilityImplementation:
    return CapabilityImplementation(
        descriptor=descriptor,
        kind=CapabilityKind.ORDER_DIRECT,
        validator=validate_direct_order,
        processor=process_direct_order,
    )


# ---------------------------------------------------------------------------
# dev.ocp.order.detailed_status
# ---------------------------------------------------------------------------


def validate_detailed_status(value: Any) -> bool:
    if not is_versioned_block(value) or not isinstance(value.get("code"), str):
        return False
    progress = value.get("progress")
    if progress is not None:
        if isinstance(progress, bool) or not isinstance(progress, int):
            return False
        if not 0 <= progress <= 100:
            return False
    return is_optional_str(value.get("description"))


def process_detailed_status(value: Dict[str, Any]) -> Dict[str, Any]:
    value["code"] = value["code"].strip().lower()
    return value


def build_detailed_status(
    descriptor: CapabilityDescriptor, config: Dict[str, Any]
) -> CapabilityImplementation:
    return CapabilityImplementation(
        descriptor=descriptor,
        kind=CapabilityKind.ORDER_DETAILED_STATUS,
        validator=validate_detailed_status,
        processor=process_detailed_status,
    )


# ---------------------------------------------------------------------------
# dev.ocp.order.shipment_tracking
# ---------------------------------------------------------------------------


def validate_shipment_tracking(value: Any) -> bool:
    if not is_versioned_block(value):
        return False
    number, carrier = value.get("tracking_number"), value.get("carrier")
    return isinstance(number, str) and bool(number.strip()) and isinstance(carrier, str)


def tracking_processor(enable_urls: bool):
    def process(value: Dict[str, Any]) -> Dict[str, Any]:
        value["carrier"] = value["carrier"].strip().lower()
        value["tracking_number"] = value["tracking_number"].strip()
        template: Optional[str] = TRACKING_URL_TEMPLATES.get(value["carrier"])
        if enable_urls and template and "tracking_url" not in value:
            value["tracking_url"] = template.format(number=value["tracking_number"])
        return value

    return process


def build_shipment_tracking(
    descriptor: CapabilityDescriptor, config: Dict[str, Any]
) -> CapabilityImplementation:
    return CapabilityImplementation(
        descriptor=descriptor,
        kind=CapabilityKind.ORDER_SHIPMENT_TRACKING,
        validator=validate_shipment_tracking,
        processor=tracking_processor(config.get("enable_tracking_urls") is True),
    )


# ---------------------------------------------------------------------------
# dev.ocp.order.tipping
# ---------------------------------------------------------------------------


def validate_tip(value: Any) -> bool:
    if not is_versioned_block(value):
        return False
    amount, percentage = value.get("amount"), value.get("percentage")
    if amount is None and percentage is None:
        return False
    if amount is not None and not _is_money(amount):
        return False
    if percentage is not None:
        if isinstance(percentage, bool) or not isinstance(percentage, (int, float)):
            return False
        if not 0 <= percentage <= 100:
            return False
    return True


def process_tip(value: Dict[str, Any]) -> Dict[str, Any]:
    amount = value.get("amount")
    if amount is not None:
        value["amount"] = {
            "amount": str(Decimal(str(amount["amount"])).quantize(Decimal("0.01"))),
            "currency": amount["currency"].upper(),
        }
    return value


def build_tipping(
    descriptor: CapabilityDescriptor, config: Dict[str, Any]
) -> CapabilityImplementation:
    return CapabilityImplementation(
        descriptor=descriptor,
        kind=CapabilityKind.ORDER_TIPPING,
        validator=validate_tip,
        processor=process_tip,
    )
