"""Patch operations describing one change of an order's representation.

The lifecycle engine renders the order before and after a mutation and
turns the difference in the fields it may touch (``status``,
``metadata`` entries, ``actions`` and ``updated_at``) into RFC 6902
operations.  Everything else in the representation is immutable after
creation, so applying every event in sequence to the representation
returned at creation time reproduces the current one.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Mapping

import jsonpatch
from jsonpointer import escape

Operation = Dict[str, Any]


def metadata_path(key: str) -> str:
    return f"/metadata/{escape(key)}"


def diff_representations(before: Mapping[str, Any], after: Mapping[str, Any]) -> List[Operation]:
    operations: List[Operation] = []
    if before["status"] != after["status"]:
        operations.append({"op": "replace", "path": "/status", "value": after["status"]})

    old_metadata, new_metadata = before["metadata"], after["metadata"]
    for key, value in new_metadata.items():
        if key not in old_metadata:
            operations.append({"op": "add", "path": metadata_path(key), "value": value})
        elif old_metadata[key] != value:
            operations.append({"op": "replace", "path": metadata_path(key), "value": value})
    for key in old_metadata:
        if key not in new_metadata:
            operations.append({"op": "remove", "path": metadata_path(key)})

    if before["actions"] != after["actions"]:
        operations.append({"op": "replace", "path": "/actions", "value": after["actions"]})
    if operations and before["updated_at"] != after["updated_at"]:
        operations.append({"op": "replace", "path": "/updated_at", "value": after["updated_at"]})
    return operations


def replay(snapshot: Mapping[str, Any], events: Iterable[Iterable[Operation]]) -> Dict[str, Any]:
    """Apply each event's operations in order to a copy of ``snapshot``."""
    document = copy.deepcopy(dict(snapshot))
    for operations in events:
        document = jsonpatch.apply_patch(document, list(operations))
    return document
