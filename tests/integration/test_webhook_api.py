"""Integration tests for webhook subscriptions."""

import pytest

pytestmark = pytest.mark.integration

PAYLOAD = {"url": "https://example.com/hooks", "events": ["order.created", "order.updated"]}


@pytest.fixture()
def webhook(auth_client):
    response = auth_client.post("/webhooks/", PAYLOAD, format="json")
    assert response.status_code == 201
    return response.json()


class TestWebhookApi:
    def test_secret_only_on_creation(self, auth_client, webhook):
        assert webhook["secret"].startswith("whsec_")
        body = auth_client.get(f"/webhooks/{webhook['id']}/").json()
        assert "secret" not in body
        assert body["events"] == ["order.created", "order.updated"]

    def test_list_envelope(self, auth_client, webhook):
        body = auth_client.get("/webhooks/").json()
        assert [w["id"] for w in body["subscriptions"]] == [webhook["id"]]

    def test_delete(self, auth_client, webhook):
        assert auth_client.delete(f"/webhooks/{webhook['id']}/").status_code == 204
        assert auth_client.get(f"/webhooks/{webhook['id']}/").status_code == 404

    def test_scoped_to_owner(self, api_client, other_user, webhook):
        api_client.force_authenticate(user=other_user)
        assert api_client.get(f"/webhooks/{webhook['id']}/").status_code == 404
        assert api_client.delete(f"/webhooks/{webhook['id']}/").status_code == 404

    def test_requires_authentication(self, api_client):
        assert api_client.get("/webhooks/").status_code == 401

    def test_unknown_event(self, auth_client):
        response = auth_client.post(
            "/webhooks/", {**PAYLOAD, "events": ["order.exploded"]}, format="json"
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "events"
