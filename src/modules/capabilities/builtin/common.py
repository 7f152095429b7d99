from __future__ import annotations

from typing import Any

VERSION_FIELD = "_version"
SUPPORTED_VERSION = "1.0"


def is_versioned_block(value: Any) -> bool:
    """Metadata blocks are objects stamped with the schema version they follow."""
    return isinstance(value, dict) and value.get(VERSION_FIELD) == SUPPORTED_VERSION


def is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def is_optional_str(value: Any) -> bool:
    return value is None or isinstance(value, str)
