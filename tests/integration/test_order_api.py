"""Integration tests for the Order API, including the live update stream."""

import json

import pytest

from modules.orders.channels import get_hub

pytestmark = pytest.mark.integration

DETAILED_STATUS = "dev.ocp.order.detailed_status@1.0"


@pytest.fixture()
def cart(auth_client, store):
    cart = auth_client.post("/carts/", {"store_id": store.id}, format="json").json()
    auth_client.post(
        f"/carts/{cart['id']}/items/", {"item_id": "burger", "quantity": 2}, format="json"
    )
    return cart


@pytest.fixture()
def order(auth_client, cart):
    response = auth_client.post("/orders/", {"cart_id": cart["id"]}, format="json")
    assert response.status_code == 201
    return response.json()


def set_status(client, order_id, *statuses):
    for status in statuses:
        response = client.patch(f"/orders/{order_id}/", {"status": status}, format="json")
        assert response.status_code == 200, response.json()
    return response


class TestCreateOrder:
    def test_from_cart(self, order):
        assert order["status"] == "pending"
        assert order["total"] == {"amount": "20.00", "currency": "USD"}
        assert order["items"][0]["item_id"] == "burger"
        assert order["metadata"][DETAILED_STATUS]["code"] == "pending"
        assert [a["id"] for a in order["actions"]] == ["cancel", "updates"]

    def test_cart_converts_once(self, auth_client, cart, order):
        response = auth_client.post("/orders/", {"cart_id": cart["id"]}, format="json")
        assert response.status_code == 404
        assert auth_client.get(f"/carts/{cart['id']}/").status_code == 404

    def test_direct(self, auth_client, store):
        payload = {
            "order_type": "direct",
            "items": [{"item_id": "burger", "quantity": 1}, {"item_id": "fries", "quantity": 2}],
            "fulfillment_type": "pickup",
        }
        response = auth_client.post("/orders/", payload, format="json")
        assert response.status_code == 201
        assert response.json()["total"]["amount"] == "17.00"

    def test_direct_requires_items(self, auth_client):
        response = auth_client.post("/orders/", {"order_type": "direct"}, format="json")
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "items"

    def test_direct_item_errors_name_the_position(self, auth_client, store):
        payload = {"order_type": "direct", "items": [{"item_id": "burger", "quantity": 0}]}
        response = auth_client.post("/orders/", payload, format="json")
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "items[0].quantity"

    def test_direct_disabled(self, auth_client, store, capabilities):
        capabilities("dev.ocp.order.direct", enabled=False)
        payload = {"order_type": "direct", "items": [{"item_id": "burger", "quantity": 1}]}
        response = auth_client.post("/orders/", payload, format="json")
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "order_type"

    def test_guests_rejected(self, api_client, store):
        payload = {"order_type": "direct", "items": [{"item_id": "burger", "quantity": 1}]}
        response = api_client.post("/orders/", payload, format="json")
        assert response.status_code == 401


class TestReadOrders:
    def test_list_envelope(self, auth_client, order):
        body = auth_client.get("/orders/").json()
        assert [o["id"] for o in body["orders"]] == [order["id"]]
        assert body["pagination"]["total"] == 1

    def test_status_filter(self, auth_client, order):
        assert auth_client.get("/orders/", {"status": "confirmed"}).json()["orders"] == []
        assert auth_client.get("/orders/", {"status": "lost"}).status_code == 400

    def test_other_principal_sees_not_found(self, api_client, other_user, order):
        api_client.force_authenticate(user=other_user)
        assert api_client.get(f"/orders/{order['id']}/").status_code == 404
        assert api_client.get("/orders/").json()["orders"] == []

    def test_staff_see_everything(self, staff_client, order):
        assert staff_client.get(f"/orders/{order['id']}/").status_code == 200
        assert len(staff_client.get("/orders/").json()["orders"]) == 1


class TestUpdateOrder:
    def test_staff_walks_the_state_machine(self, staff_client, order):
        response = set_status(staff_client, order["id"], "confirmed", "in_transit", "completed")
        body = response.json()
        assert body["status"] == "completed"
        assert body["metadata"][DETAILED_STATUS]["progress"] == 100
        assert [a["id"] for a in body["actions"]] == ["rate", "updates"]

    def test_customers_cannot_update(self, auth_client, order):
        response = auth_client.patch(
            f"/orders/{order['id']}/", {"status": "confirmed"}, format="json"
        )
        assert response.status_code == 403
        assert response.json()["kind"] == "forbidden"

    def test_invalid_transition_conflicts(self, staff_client, order):
        response = staff_client.patch(
            f"/orders/{order['id']}/", {"status": "completed"}, format="json"
        )
        assert response.status_code == 409
        assert response.json()["title"] == "Invalid Order Status Transition"

    def test_cancellation_not_via_patch(self, staff_client, order):
        response = staff_client.patch(
            f"/orders/{order['id']}/", {"status": "cancelled"}, format="json"
        )
        assert response.status_code == 400

    def test_metadata_update(self, staff_client, order):
        tip = {"dev.ocp.order.tipping@1.0": {"percentage": 15}}
        body = staff_client.patch(
            f"/orders/{order['id']}/", {"metadata": tip}, format="json"
        ).json()
        assert body["metadata"]["dev.ocp.order.tipping@1.0"] == {"percentage": 15}
        assert body["status"] == "pending"

    def test_null_metadata_removes_an_enabled_capability_block(
        self, staff_client, order, capabilities
    ):
        capabilities("dev.ocp.order.tipping", enabled=True)
        tip = {"dev.ocp.order.tipping@1.0": {"_version": "1.0", "percentage": 15}}
        body = staff_client.patch(
            f"/orders/{order['id']}/", {"metadata": tip}, format="json"
        ).json()
        assert body["metadata"]["dev.ocp.order.tipping@1.0"]["percentage"] == 15

        response = staff_client.patch(
            f"/orders/{order['id']}/",
            {"metadata": {"dev.ocp.order.tipping@1.0": None}},
            format="json",
        )
        assert response.status_code == 200
        assert "dev.ocp.order.tipping@1.0" not in response.json()["metadata"]

    def test_completion_waits_for_payment(self, staff_client, order, capabilities):
        capabilities("dev.ocp.payment.x402_fiat", enabled=True)
        set_status(staff_client, order["id"], "confirmed", "in_transit")
        response = staff_client.patch(
            f"/orders/{order['id']}/", {"status": "completed"}, format="json"
        )
        assert response.status_code == 409
        assert response.json()["title"] == "Payment Not Settled"

        payment = {"dev.ocp.payment.x402_fiat@1.0": {"_version": "1.0", "status": " Settled "}}
        response = staff_client.patch(
            f"/orders/{order['id']}/",
            {"status": "completed", "metadata": payment},
            format="json",
        )
        assert response.status_code == 200
        assert response.json()["metadata"]["dev.ocp.payment.x402_fiat@1.0"]["status"] == "settled"


class TestCancelOrder:
    def test_cancel_records_reason(self, auth_client, order):
        response = auth_client.post(
            f"/orders/{order['id']}/cancel/", {"reason": "too slow"}, format="json"
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "cancelled"
        assert body["metadata"]["cancellation"]["reason"] == "too slow"

    def test_second_cancel_forbidden(self, auth_client, order):
        auth_client.post(f"/orders/{order['id']}/cancel/", {}, format="json")
        response = auth_client.post(f"/orders/{order['id']}/cancel/", {}, format="json")
        assert response.status_code == 403
        assert response.json()["title"] == "Order Cannot Be Cancelled"


class TestRateOrder:
    def test_pending_order_not_rateable(self, auth_client, order):
        response = auth_client.post(
            f"/orders/{order['id']}/ratings/", {"food": 5}, format="json"
        )
        assert response.status_code == 422
        assert response.json()["errors"][0]["type"] == "business_logic"

    def test_rate_completed_order(self, auth_client, staff_client, order):
        set_status(staff_client, order["id"], "confirmed", "in_transit", "completed")
        response = auth_client.post(
            f"/orders/{order['id']}/ratings/", {"food": 5, "delivery": 4}, format="json"
        )
        assert response.status_code == 201
        rating = response.json()["metadata"]["rating"]
        assert rating["food"] == 5
        assert rating["delivery"] == 4

    def test_out_of_range(self, auth_client, staff_client, order):
        set_status(staff_client, order["id"], "confirmed", "in_transit", "completed")
        response = auth_client.post(
            f"/orders/{order['id']}/ratings/", {"food": 9, "restaurant": 0}, format="json"
        )
        assert response.status_code == 400
        assert [e["field"] for e in response.json()["errors"]] == ["food", "restaurant"]


class TestUpdatesStream:
    def test_streams_patches(
        self, auth_client, staff_client, order, django_capture_on_commit_callbacks
    ):
        response = auth_client.get(
            f"/orders/{order['id']}/updates/", HTTP_ACCEPT="text/event-stream"
        )
        assert response.status_code == 200
        assert response["Content-Type"] == "text/event-stream"
        assert response["Cache-Control"] == "no-cache"

        frames = iter(response.streaming_content)
        assert next(frames) == b": subscribed\n\n"

        with django_capture_on_commit_callbacks(execute=True):
            set_status(staff_client, order["id"], "confirmed")
        event_line, id_line, data_line = next(frames).decode().strip().split("\n")
        assert event_line == "event: order.patch"
        assert id_line == "id: 1"
        operations = json.loads(data_line[len("data: "):])
        assert operations[0] == {"op": "replace", "path": "/status", "value": "confirmed"}

        response.close()
        assert get_hub().subscriber_count(order["id"]) == 0

    def test_stream_for_foreign_order_is_not_found(self, api_client, other_user, order):
        api_client.force_authenticate(user=other_user)
        response = api_client.get(f"/orders/{order['id']}/updates/")
        assert response.status_code == 404
        assert get_hub().subscriber_count(order["id"]) == 0
