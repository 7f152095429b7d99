"""Unit tests for the metadata processing pipeline."""

from __future__ import annotations

import pytest

from modules.capabilities.metadata import (
    process_incoming_metadata,
    process_outgoing_metadata,
    process_request_body,
    process_response_payload,
)
from modules.capabilities.registry import build_registry

pytestmark = pytest.mark.unit

TRACKING = "dev.ocp.order.shipment_tracking@1.0"
TIP = "dev.ocp.order.tipping@1.0"


@pytest.fixture()
def registry():
    return build_registry(
        {
            "dev.ocp.order.shipment_tracking": {"enabled": True, "enable_tracking_urls": True},
            "dev.ocp.order.tipping": {"enabled": False},
        }
    )


def _tracking(**fields):
    return {"_version": "1.0", "carrier": " UPS ", "tracking_number": " 1Z999 ", **fields}


class TestIncoming:
    def test_valid_value_is_processed(self, registry):
        result = process_incoming_metadata({TRACKING: _tracking()}, registry)
        assert result[TRACKING] == {
            "_version": "1.0",
            "carrier": "ups",
            "tracking_number": "1Z999",
            "tracking_url": "https://www.ups.com/track?tracknum=1Z999",
        }

    def test_invalid_value_is_dropped_without_affecting_other_keys(self, registry):
        metadata = {
            TRACKING: {"_version": "1.0", "carrier": "ups"},
            "com.example.loyalty@1.0": {"points": 10},
        }
        result = process_incoming_metadata(metadata, registry)
        assert TRACKING not in result
        assert result["com.example.loyalty@1.0"] == {"points": 10}

    def test_disabled_capability_value_passes_untouched(self, registry):
        value = {"anything": "goes"}
        assert process_incoming_metadata({TIP: value}, registry) == {TIP: value}

    def test_wrong_version_is_dropped(self, registry):
        result = process_incoming_metadata({TRACKING: _tracking(_version="2.0")}, registry)
        assert result == {}

    def test_null_is_kept_as_a_removal_marker(self, registry):
        result = process_incoming_metadata({TRACKING: None}, registry)
        assert result == {TRACKING: None}

    def test_input_is_not_mutated(self, registry):
        metadata = {TRACKING: _tracking()}
        process_incoming_metadata(metadata, registry)
        assert metadata[TRACKING]["carrier"] == " UPS "


class TestOutgoing:
    def test_values_are_processed_not_validated(self, registry):
        broken = {"_version": "1.0", "carrier": "ups"}
        result = process_outgoing_metadata({TRACKING: broken}, registry)
        assert result[TRACKING] == broken

    def test_processing_is_idempotent(self, registry):
        once = process_outgoing_metadata({TRACKING: _tracking()}, registry)
        twice = process_outgoing_metadata(once, registry)
        assert once == twice


class TestRequestBody:
    def test_non_object_bodies_are_returned_as_is(self, registry):
        body = [1, 2, 3]
        assert process_request_body(body, registry) is body

    def test_body_without_metadata_map_is_returned_as_is(self, registry):
        body = {"metadata": "not-a-map"}
        assert process_request_body(body, registry) is body

    def test_metadata_map_is_rewritten(self, registry):
        body = {"store_id": "s1", "metadata": {TRACKING: {"_version": "1.0"}}}
        assert process_request_body(body, registry) == {"store_id": "s1", "metadata": {}}


class TestResponsePayload:
    def test_collection_envelope(self, registry):
        payload = {
            "orders": [{"id": "o1", "metadata": {TRACKING: _tracking()}}],
            "pagination": {"page": 1},
        }
        result = process_response_payload(payload, registry)
        assert result["orders"][0]["metadata"][TRACKING]["carrier"] == "ups"
        assert result["pagination"] == {"page": 1}

    def test_nested_resources(self, registry):
        payload = {"items": [{"id": "i1", "metadata": {TRACKING: _tracking()}}], "metadata": {}}
        result = process_response_payload(payload, registry)
        assert result["items"][0]["metadata"][TRACKING]["tracking_number"] == "1Z999"

    def test_metadata_values_are_not_walked(self, registry):
        inner = {"metadata": {TRACKING: _tracking()}}
        payload = {"metadata": {"com.example.wrapper@1.0": inner}}
        result = process_response_payload(payload, registry)
        assert result["metadata"]["com.example.wrapper@1.0"] == inner
