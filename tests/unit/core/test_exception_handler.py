"""Unit tests for the problem-document exception handler."""

from __future__ import annotations

import pytest
from django.db import OperationalError
from rest_framework import exceptions

from modules.carts.exceptions import CartExpired
from modules.core.exception_handler import flatten_validation_errors, problem_details_handler

pytestmark = pytest.mark.unit


class TestFlattenValidationErrors:
    def test_nested_paths(self):
        detail = {
            "items": [{}, {"quantity": ["Must be at least 1."]}],
            "metadata": {"note": ["Too long."]},
            "non_field_errors": ["Bad request."],
        }
        flat = flatten_validation_errors(detail)
        assert [e.get("field") for e in flat] == ["items[1].quantity", "metadata.note", None]
        assert all(e["type"] == "validation" for e in flat)

    def test_list_serializer_errors_keyed_by_index(self):
        detail = {"items": {0: {"quantity": ["Must be at least 1."]}, 2: {"item_id": ["Required."]}}}
        flat = flatten_validation_errors(detail)
        assert [e["field"] for e in flat] == ["items[0].quantity", "items[2].item_id"]

    def test_every_message_is_kept(self):
        flat = flatten_validation_errors({"url": ["Invalid.", "Too long."]})
        assert [e["reason"] for e in flat] == ["Invalid.", "Too long."]


class TestProblemDetailsHandler:
    def test_domain_error(self):
        response = problem_details_handler(CartExpired(), {})
        assert response.status_code == 410
        assert response.data["kind"] == "expired"
        assert response.data["next_actions"][0]["id"] == "create_new_cart"
        assert response.content_type == "application/problem+json"

    def test_throttled(self):
        response = problem_details_handler(exceptions.Throttled(wait=12), {})
        assert response.status_code == 429
        assert response.data["kind"] == "conflict"
        assert response["Retry-After"] == "12"

    def test_storage_failure_is_internal(self):
        response = problem_details_handler(OperationalError("disk full"), {})
        assert response.status_code == 500
        assert response.data["kind"] == "internal"
        assert "disk full" not in response.data["detail"]

    def test_unknown_exceptions_are_left_to_django(self):
        assert problem_details_handler(RuntimeError("boom"), {}) is None
