"""Capability descriptor and implementation.

A descriptor is the static identity of a capability; an implementation
binds it to three independently optional behaviors:

* ``routes`` - URL patterns mounted only while the capability is enabled.
* ``validator`` - ``value -> bool`` deciding whether a metadata value under
  the capability's namespace is acceptable.
* ``processor`` - ``value -> value`` normalizing such a value.  Processors
  must be idempotent: ``process(process(x)) == process(x)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from django.urls import URLPattern

from modules.capabilities.kinds import CapabilityKind

SCHEMA_BASE_URL = "https://schemas.ocp.dev/"

Validator = Callable[[Any], bool]
Processor = Callable[[Any], Any]


@dataclass(frozen=True)
class CapabilityDescriptor:
    id: str
    version: str = "1.0"
    schema_url: Optional[str] = None

    @property
    def versioned_id(self) -> str:
        return f"{self.id}@{self.version}"

    @classmethod
    def for_kind(
        cls,
        kind: CapabilityKind,
        version: str = "1.0",
        schema_url: Optional[str] = None,
    ) -> CapabilityDescriptor:
        if schema_url is None:
            major = version.split(".", 1)[0]
            schema_url = f"{SCHEMA_BASE_URL}{kind.schema_path}/v{major}.json"
        return cls(id=kind.value, version=version, schema_url=schema_url)


@dataclass(frozen=True)
class CapabilityImplementation:
    descriptor: CapabilityDescriptor
    kind: CapabilityKind = CapabilityKind.UNKNOWN
    routes: Sequence[URLPattern] = field(default_factory=tuple)
    validator: Optional[Validator] = None
    processor: Optional[Processor] = None

    @property
    def namespace(self) -> str:
        return self.descriptor.id
