"""Restaurant profile API tests."""


class TestProfile:
    def test_get_profile(self, client, user_headers, basic_user):
        resp = client.get("/api/restaurant/me", headers=user_headers)
        assert resp.status_code == 200
        profile = resp.json()["restaurant"]
        assert profile["id"] == basic_user.id
        assert profile["email"] == "user@example.com"
        assert profile["fullName"] == "User Tester"
        assert profile["preferences"] is None

    def test_update_profile_and_preferences(self, client, admin_headers):
        resp = client.put(
            "/api/restaurant/me",
            json={
                "firstName": "Spice",
                "lastName": "Route",
                "city": "Pune",
                "email": "Owner@SpiceRoute.in",
                "preferences": {"supportPlan": "annual", "startDate": "2024-04-01"},
            },
            headers=admin_headers,
        )
        assert resp.status_code == 200
        profile = resp.json()["restaurant"]
        assert profile["fullName"] == "Spice Route"
        assert profile["email"] == "owner@spiceroute.in"
        assert profile["city"] == "Pune"
        assert profile["preferences"]["supportPlan"] == "annual"
        assert profile["preferences"]["startDate"] == "2024-04-01"

    def test_preferences_are_merged(self, client, admin_headers):
        client.put("/api/restaurant/me", json={"preferences": {"supportPlan": "annual"}}, headers=admin_headers)
        resp = client.put("/api/restaurant/me", json={"preferences": {"paymentStatus": "paid"}}, headers=admin_headers)
        preferences = resp.json()["restaurant"]["preferences"]
        assert preferences["supportPlan"] == "annual"
        assert preferences["paymentStatus"] == "paid"

    def test_email_in_use(self, client, admin_headers, manager_user):
        resp = client.put("/api/restaurant/me", json={"email": "MANAGER@example.com"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Email already in use"

    def test_invalid_email(self, client, admin_headers):
        resp = client.put("/api/restaurant/me", json={"email": "not-an-email"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Validation failed"

    def test_only_admin_updates(self, client, manager_headers):
        resp = client.put("/api/restaurant/me", json={"city": "Goa"}, headers=manager_headers)
        assert resp.status_code == 403
