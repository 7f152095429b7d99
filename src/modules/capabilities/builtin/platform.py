"""Cross-cutting capabilities: resource versioning, fiat payment intents
and discoverable promotions."""

from __future__ import annotations

from typing import Any, Dict

from modules.capabilities.base import CapabilityDescriptor, CapabilityImplementation
from modules.capabilities.builtin.common import is_positive_int, is_versioned_block
from modules.capabilities.kinds import CapabilityKind

PAYMENT_STATUSES = ("pending", "authorized", "settled", "failed")
SETTLED = "settled"


def validate_versioning(value: Any) -> bool:
    return is_versioned_block(value) and is_positive_int(value.get("version"))


def validate_payment(value: Any) -> bool:
    if not is_versioned_block(value) or not isinstance(value.get("status"), str):
        return False
    return value["status"].strip().lower() in PAYMENT_STATUSES


def process_payment(value: Dict[str, Any]) -> Dict[str, Any]:
    value["status"] = value["status"].strip().lower()
    return value


def is_settled(block: Any) -> bool:
    return isinstance(block, dict) and str(block.get("status", "")).lower() == SETTLED


def validate_promotions(value: Any) -> bool:
    if not is_versioned_block(value):
        return False
    promotions = value.get("promotions")
    if not isinstance(promotions, list):
        return False
    return all(isinstance(p, dict) and isinstance(p.get("code"), str) for p in promotions)


def process_promotions(value: Dict[str, Any]) -> Dict[str, Any]:
    for promotion in value["promotions"]:
        promotion["code"] = promotion["code"].strip().upper()
    return value


def build_versioning(
    descriptor: CapabilityDescriptor, config: Dict[str, Any]
) -> CapabilityImplementation:
    return CapabilityImplementation(
        descriptor=descriptor,
        kind=CapabilityKind.RESOURCE_VERSIONING,
        validator=validate_versioning,
    )


def build_payment(
    descriptor: CapabilityDescriptor, config: Dict[str, Any]
) -> CapabilityImplementation:
    return CapabilityImplementation(
        descriptor=descriptor,
        kind=CapabilityKind.PAYMENT_X402_FIAT,
        validator=validate_payment,
        processor=process_payment,
    )


def build_promotions(
    descriptor: CapabilityDescriptor, config: Dict[str, Any]
) -> CapabilityImplementation:
    return CapabilityImplementation(
        descriptor=descriptor,
        kind=CapabilityKind.PROMOTIONS_DISCOVERABLE,
        validator=validate_promotions,
        processor=process_promotions,
    )
