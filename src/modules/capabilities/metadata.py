"""Metadata processing pipeline.

Every ``metadata`` map is keyed by ``"<namespace>@<version>"``.  Per key:

* namespace not enabled (unknown or switched off) - value kept untouched,
  on requests and on responses;
* enabled, inbound - the value must pass the capability's validator, else
  the key is dropped (the request itself still goes through), then it is
  replaced by the processor's output.  A ``null`` value is kept as is: it
  asks for the key to be removed from the resource;
* enabled, outbound - the value is replaced by the processor's output.

Each key is handled independently; one capability failing never changes
how the other keys of the same map are treated.  Processors are
idempotent, so running a payload through the pipeline twice is the same
as running it once.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import structlog

from modules.capabilities.kinds import namespace_of
from modules.capabilities.registry import CapabilityRegistry, get_registry

logger = structlog.get_logger(__name__)

METADATA_FIELD = "metadata"


def process_incoming_metadata(
    metadata: Mapping[str, Any], registry: Optional[CapabilityRegistry] = None
) -> Dict[str, Any]:
    registry = registry if registry is not None else get_registry()
    processed: Dict[str, Any] = {}
    for key, value in metadata.items():
        namespace = namespace_of(key)
        if value is None or not registry.is_enabled(namespace):
            processed[key] = value
            continue
        if not registry.validate_metadata(namespace, value):
            logger.warning("metadata.key_dropped", key=key, capability=namespace)
            continue
        processed[key] = registry.process_metadata(namespace, value)
    return processed


def process_outgoing_metadata(
    metadata: Mapping[str, Any], registry: Optional[CapabilityRegistry] = None
) -> Dict[str, Any]:
    registry = registry if registry is not None else get_registry()
    processed: Dict[str, Any] = {}
    for key, value in metadata.items():
        namespace = namespace_of(key)
        if registry.is_enabled(namespace):
            processed[key] = registry.process_metadata(namespace, value)
        else:
            processed[key] = value
    return processed


def process_request_body(
    body: Any, registry: Optional[CapabilityRegistry] = None
) -> Any:
    """Rewrite the top-level ``metadata`` map of a request body."""
    if not isinstance(body, dict) or not isinstance(body.get(METADATA_FIELD), dict):
        return body
    return {
        **body,
        METADATA_FIELD: process_incoming_metadata(body[METADATA_FIELD], registry),
    }


def process_response_payload(
    payload: Any, registry: Optional[CapabilityRegistry] = None
) -> Any:
    """Rewrite every ``metadata`` map found in a response payload.

    Walks single resources, lists of resources and collection envelopes
    (``{"orders": [...], "pagination": {...}}``), including resources
    nested inside other resources such as catalog items.  Metadata values
    themselves are not walked: they belong to their capability.
    """
    registry = registry if registry is not None else get_registry()
    if isinstance(payload, list):
        return [process_response_payload(item, registry) for item in payload]
    if not isinstance(payload, Mapping):
        return payload

    processed: Dict[str, Any] = {}
    for key, value in payload.items():
        if key == METADATA_FIELD and isinstance(value, Mapping):
            processed[key] = process_outgoing_metadata(value, registry)
        elif isinstance(value, (list, Mapping)):
            processed[key] = process_response_payload(value, registry)
        else:
            processed[key] = value
    return processed
