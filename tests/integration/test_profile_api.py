"""Integration tests for the user profile capability routes."""

import pytest

pytestmark = pytest.mark.integration

ADDRESS = {"label": "home", "address": "1 Main St", "latitude": 40.7, "longitude": -74.0}


@pytest.fixture(autouse=True)
def profiles_enabled(capabilities):
    return capabilities("dev.ocp.user.profile", enabled=True, max_saved_addresses=2)


def profile_url(user):
    return f"/users/{user.pk}/profile/"


class TestProfileApi:
    def test_created_on_first_read(self, auth_client, user):
        body = auth_client.get(profile_url(user)).json()
        assert body["user_id"] == str(user.pk)
        assert body["saved_addresses"] == []
        assert body["preferences"] == {}

    def test_update(self, auth_client, user):
        response = auth_client.put(
            profile_url(user),
            {"display_name": "Sam", "preferences": {"locale": "en-US"}},
            format="json",
        )
        assert response.status_code == 200
        body = auth_client.get(profile_url(user)).json()
        assert body["display_name"] == "Sam"
        assert body["preferences"] == {"locale": "en-US"}

    def test_custom_preferences_need_the_flag(self, auth_client, user, capabilities):
        payload = {"preferences": {"favourite_colour": "green"}}
        response = auth_client.put(profile_url(user), payload, format="json")
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "preferences.favourite_colour"

        capabilities("dev.ocp.user.profile", allow_custom_preferences=True)
        response = auth_client.put(profile_url(user), payload, format="json")
        assert response.json()["preferences"] == {"favourite_colour": "green"}

    def test_saved_addresses(self, auth_client, user):
        url = f"{profile_url(user)}addresses/"
        assert auth_client.post(url, ADDRESS, format="json").status_code == 201
        body = auth_client.post(url, {"address": "2 Side St"}, format="json").json()
        assert [a["address"] for a in body["saved_addresses"]] == ["1 Main St", "2 Side St"]

        response = auth_client.post(url, {"address": "3 Far Rd"}, format="json")
        assert response.status_code == 422
        assert response.json()["kind"] == "business_logic"

        body = auth_client.delete(f"{url}0/").json()
        assert [a["address"] for a in body["saved_addresses"]] == ["2 Side St"]
        assert auth_client.delete(f"{url}5/").status_code == 400

    def test_other_principals_are_refused(self, api_client, other_user, user):
        api_client.force_authenticate(user=other_user)
        response = api_client.get(profile_url(user))
        assert response.status_code == 403
        assert response.json()["kind"] == "forbidden"

    def test_staff_reach_any_profile(self, staff_client, user):
        assert staff_client.get(profile_url(user)).status_code == 200

    def test_requires_authentication(self, api_client, user):
        assert api_client.get(profile_url(user)).status_code == 401

    def test_route_follows_the_capability(self, auth_client, user, capabilities):
        capabilities("dev.ocp.user.profile", enabled=False)
        assert auth_client.get(profile_url(user)).status_code == 404
