"""Capability registry.

The registry is the single source of truth for which capabilities exist
on this server.  Routing, discovery and the metadata pipeline all ask the
same question, ``is_enabled(namespace)``, which is true only when the
namespace has a configuration entry with ``enabled`` set to ``True``.

Validators and processors are trusted in-process code, but a failure in
one of them never escapes the registry: a raising validator counts as a
rejection and a raising processor leaves the value untouched.  Clients
rely on this to send metadata for capabilities whose exact shape they
may not know.

The process-wide instance is built lazily from
``settings.COMMERCE_CAPABILITIES`` by ``get_registry()`` and is read-only
afterwards.
"""

from __future__ import annotations

import copy
from functools import lru_cache
from typing import Any, Dict, Iterator, List, Mapping, Optional

import structlog
from django.conf import settings

from modules.capabilities.base import CapabilityDescriptor, CapabilityImplementation
from modules.capabilities.exceptions import CapabilityConfigurationError
from modules.capabilities.kinds import CapabilityKind

logger = structlog.get_logger(__name__)

# Keys of a capability configuration entry that describe the registry entry
# itself rather than the capability's behavior.
RESERVED_CONFIG_KEYS = frozenset({"enabled", "version", "schema_url"})


class CapabilityRegistry:
    def __init__(self, config: Optional[Mapping[str, Mapping[str, Any]]] = None) -> None:
        self._implementations: Dict[str, CapabilityImplementation] = {}
        self._config: Dict[str, Dict[str, Any]] = {
            namespace: dict(entry) for namespace, entry in (config or {}).items()
        }

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, implementation: CapabilityImplementation) -> None:
        namespace = implementation.namespace
        if namespace in self._implementations:
            raise CapabilityConfigurationError(
                f"Capability {namespace!r} is already registered."
            )
        self._implementations[namespace] = implementation
        logger.debug(
            "capability.registered",
            capability=implementation.descriptor.versioned_id,
            kind=implementation.kind.value,
            enabled=self.is_enabled(namespace),
        )

    def __contains__(self, namespace: str) -> bool:
        return namespace in self._implementations

    def __iter__(self) -> Iterator[CapabilityImplementation]:
        return iter(self._implementations.values())

    def __len__(self) -> int:
        return len(self._implementations)

    def get(self, namespace: str) -> Optional[CapabilityImplementation]:
        return self._implementations.get(namespace)

    # ------------------------------------------------------------------
    # Enablement
    # ------------------------------------------------------------------

    def is_enabled(self, namespace: str) -> bool:
        entry = self._config.get(namespace)
        return entry is not None and entry.get("enabled") is True

    def get_config(self, namespace: str) -> Optional[Dict[str, Any]]:
        entry = self._config.get(namespace)
        return dict(entry) if entry is not None else None

    def get_enabled_capabilities(self) -> List[Dict[str, Any]]:
        """Discovery view of every enabled, registered capability."""
        enabled = []
        for namespace, implementation in self._implementations.items():
            if not self.is_enabled(namespace):
                continue
            entry = self._config[namespace]
            enabled.append(
                {
                    "id": implementation.descriptor.versioned_id,
                    "schema_url": implementation.descriptor.schema_url,
                    "status": "stable",
                    "metadata": {
                        key: value
                        for key, value in entry.items()
                        if key not in RESERVED_CONFIG_KEYS
                    },
                }
            )
        return enabled

    def get_routes(self) -> List[Any]:
        """URL patterns of every enabled implementation that declares routes."""
        routes: List[Any] = []
        for namespace, implementation in self._implementations.items():
            if implementation.routes and self.is_enabled(namespace):
                routes.extend(implementation.routes)
        return routes

    # ------------------------------------------------------------------
    # Metadata hooks
    # ------------------------------------------------------------------

    def validate_metadata(self, namespace: str, value: Any) -> bool:
        implementation = self._implementations.get(namespace)
        if implementation is None or implementation.validator is None:
            return True
        try:
            return bool(implementation.validator(value))
        except Exception as exc:
            logger.warning(
                "capability.validator_failed", capability=namespace, error=repr(exc)
            )
            return False

    def process_metadata(self, namespace: str, value: Any) -> Any:
        implementation = self._implementations.get(namespace)
        if implementation is None or implementation.processor is None:
            return value
        try:
            return implementation.processor(copy.deepcopy(value))
        except Exception as exc:
            logger.warning(
                "capability.processor_failed", capability=namespace, error=repr(exc)
            )
            return value


def build_registry(
    config: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> CapabilityRegistry:
    """Build a registry holding one implementation per configured namespace.

    Known namespaces get their built-in implementation; other declared
    namespaces get a descriptor-only ``UNKNOWN`` implementation.
    """
    from modules.capabilities.builtin import BUILTIN_CAPABILITIES

    if config is None:
        config = getattr(settings, "COMMERCE_CAPABILITIES", {})

    registry = CapabilityRegistry(config)
    for namespace, entry in config.items():
        if "@" in namespace:
            raise CapabilityConfigurationError(
                f"Capability configuration is keyed by namespace, got {namespace!r}."
            )
        kind = CapabilityKind.from_namespace(namespace)
        version = str(entry.get("version", "1.0"))
        schema_url = entry.get("schema_url")
        if kind is CapabilityKind.UNKNOWN:
            descriptor = CapabilityDescriptor(
                id=namespace, version=version, schema_url=schema_url
            )
            registry.register(CapabilityImplementation(descriptor=descriptor))
            continue
        descriptor = CapabilityDescriptor.for_kind(kind, version, schema_url)
        factory = BUILTIN_CAPABILITIES[kind]
        registry.register(factory(descriptor, dict(entry)))

    logger.info(
        "capability.registry_built",
        registered=len(registry),
        enabled=[c["id"] for c in registry.get_enabled_capabilities()],
    )
    return registry


@lru_cache(maxsize=1)
def get_registry() -> CapabilityRegistry:
    return build_registry()


def reset_registry() -> None:
    get_registry.cache_clear()
