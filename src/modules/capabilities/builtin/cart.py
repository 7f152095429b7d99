"""Cart capability (``dev.ocp.cart``).

The block lives on carts and lists the policies the cart was created
with; the policy engine itself is ``modules.carts.policies``.
"""

from __future__ import annotations

from typing import Any, Dict

from pydantic import ValidationError

from modules.capabilities.base import CapabilityDescriptor, CapabilityImplementation
from modules.capabilities.builtin.common import is_versioned_block
from modules.capabilities.kinds import CapabilityKind
from modules.carts.policies import parse_policies


def validate_cart_metadata(value: Any) -> bool:
    if not is_versioned_block(value):
        return False
    policies = value.get("policies", [])
    if not isinstance(policies, list):
        return False
    try:
        parse_policies(policies)
    except ValidationError:
        return False
    return True


def process_cart_metadata(value: Dict[str, Any]) -> Dict[str, Any]:
    if isinstance(value.get("policies"), list):
        value["policies"] = [p.to_metadata() for p in parse_policies(value["policies"])]
    return value


def build(descriptor: CapabilityDescriptor, config: Dict[str, Any]) -> CapabilityImplementation:
    return CapabilityImplementation(
        descriptor=descriptor,
        kind=CapabilityKind.CART,
        validator=validate_cart_metadata,
        processor=process_cart_metadata,
    )
