"""
Tests for cookie policy routes

Tests the public policy views and the script gate endpoint.
"""

API = "/api/consent"


class TestGetPolicy:
    async def test_policy_not_found(self, client):
        response = await client.get(f"{API}/policy")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["error_code"] == "RESOURCE_POLICY_NOT_FOUND"
        assert error["path"] == f"{API}/policy"

    async def test_active_policy(self, client, active_policy):
        response = await client.get(f"{API}/policy")

        assert response.status_code == 200
        data = response.json()
        assert data["version"] == "1.0.0"
        assert data["lastUpdated"] == "2026-10-01"
        assert data["expirationDays"] == 365
        assert data["cookiePrefix"] == "site"
        assert data["thirdPartyServices"] == []
        assert [category["id"] for category in data["categories"]] == ["essential", "analytics"]
        essential = data["categories"][0]
        assert essential["required"] is True
        assert essential["defaultEnabled"] is True
        assert essential["cookies"] == [
            {"name": "PHPSESSID", "purpose": "Session", "provider": "Site", "expiry": "Session"}
        ]

    async def test_inactive_policy_not_served(self, client, policy_store):
        await policy_store("1.0.0", is_active=False)

        response = await client.get(f"{API}/policy")

        assert response.status_code == 404


class TestGetCategories:
    async def test_categories_without_cookies(self, client, active_policy):
        response = await client.get(f"{API}/categories")

        assert response.status_code == 200
        categories = response.json()["categories"]
        assert [category["id"] for category in categories] == ["essential", "analytics"]
        assert all(category["cookies"] == [] for category in categories)


class TestGetScripts:
    async def test_scripts_withheld_without_consent(self, client, active_policy):
        response = await client.get(f"{API}/scripts/analytics")

        assert response.status_code == 200
        assert response.json() == {"category": "analytics", "scripts": [], "shouldInject": False}

    async def test_scripts_after_accept(self, client, active_policy):
        await client.post(f"{API}/accept")

        response = await client.get(f"{API}/scripts/analytics")

        data = response.json()
        assert data["shouldInject"] is True
        assert [script["type"] for script in data["scripts"]] == ["external", "inline"]
        assert data["scripts"][0]["async"] is True

    async def test_unknown_category(self, client, active_policy):
        response = await client.get(f"{API}/scripts/unknown")

        assert response.status_code == 404
        assert response.json()["error"]["error_code"] == "RESOURCE_CATEGORY_NOT_FOUND"

    async def test_no_active_policy(self, client):
        response = await client.get(f"{API}/scripts/analytics")

        assert response.status_code == 404


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
