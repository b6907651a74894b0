"""
API envelope and endpoint tests.

Tests:
- Envelope shape (success/error) and requestId on every response
- Health check endpoint
- Profiles, nearest hub, select, state, widget retry
- Server-rendered demo page
"""

import pytest


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class TestHealthEndpoint:
    """GET /health returns envelope with status and version."""

    @pytest.mark.asyncio
    async def test_health_returns_200(self, client):
        response = await client.get("/health")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health_envelope_shape(self, client):
        body = (await client.get("/health")).json()
        assert body["success"] is True
        assert body["data"]["status"] == "healthy"
        assert "version" in body["data"]
        assert isinstance(body["data"]["tomtomEnabled"], bool)


# ---------------------------------------------------------------------------
# Envelope shape
# ---------------------------------------------------------------------------

class TestAPIEnvelope:
    """All responses follow {success, data|error, requestId} shape."""

    @pytest.mark.asyncio
    async def test_404_error_envelope(self, client):
        response = await client.get("/nonexistent-route")
        body = response.json()
        assert response.status_code == 404
        assert body["success"] is False
        assert body["error"]["code"] == "NOT_FOUND"
        assert body["error"]["message"] == "Resource not found."
        assert "requestId" in body

    @pytest.mark.asyncio
    async def test_custom_request_id_header(self, client):
        custom_id = "test-req-12345"
        response = await client.get("/health", headers={"x-request-id": custom_id})
        assert response.headers["x-request-id"] == custom_id
        assert response.json()["requestId"] == custom_id

    @pytest.mark.asyncio
    async def test_auto_generated_request_id(self, client):
        response = await client.get("/islands/profiles")
        req_id = response.headers.get("x-request-id")
        assert req_id
        assert response.json()["requestId"] == req_id

    @pytest.mark.asyncio
    async def test_validation_error_envelope(self, client):
        response = await client.get("/islands/hubs/nearest", params={"lat": 200, "lon": 29, "capability": "ski"})
        body = response.json()
        assert response.status_code == 422
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert "lat" in body["error"]["message"]


# ---------------------------------------------------------------------------
# Islands endpoints
# ---------------------------------------------------------------------------

class TestProfiles:

    @pytest.mark.asyncio
    async def test_lists_demo_profiles(self, client):
        body = (await client.get("/islands/profiles")).json()
        keys = [p["key"] for p in body["data"]["profiles"]]
        assert keys == ["istanbul", "antalya", "erzurum", "siirt"]
        assert body["data"]["profiles"][2]["displayName"] == "Palandöken"


class TestNearestHub:

    @pytest.mark.asyncio
    async def test_match(self, client):
        response = await client.get("/islands/hubs/nearest", params={"lat": 36.6, "lon": 30.56, "capability": "marine"})
        match = response.json()["data"]["match"]
        assert match["hub"]["id"] == "antalya"
        assert match["distanceKm"] <= match["hub"]["radiusKm"]

    @pytest.mark.asyncio
    async def test_no_match(self, client):
        response = await client.get("/islands/hubs/nearest", params={"lat": 37.93, "lon": 41.95, "capability": "ski"})
        assert response.status_code == 200
        assert response.json()["data"]["match"] is None

    @pytest.mark.asyncio
    async def test_unknown_capability_rejected(self, client):
        response = await client.get("/islands/hubs/nearest", params={"lat": 41, "lon": 29, "capability": "volcano"})
        assert response.status_code == 422


class TestSelectAndState:

    @pytest.mark.asyncio
    async def test_select_erzurum(self, client):
        response = await client.post(
            "/islands/select",
            json={
                "cityKey": "erzurum",
                "weather": {"temperature": -5, "precipitation": 10, "windSpeed": 20, "cloudCover": 40, "snowfall": 0},
            },
        )
        body = response.json()

        assert response.status_code == 200
        assert body["success"] is True
        assert body["data"]["committed"] is True
        assert body["data"]["city"]["key"] == "erzurum"

        ski = body["data"]["widgets"][0]
        assert ski["widget"] == "ski"
        assert ski["data"]["resort"] == "Palandöken"
        assert str(ski["data"]["snowDepth"]) in ski["narrative"]

    @pytest.mark.asyncio
    async def test_state_reflects_last_selection(self, client):
        await client.post("/islands/select", json={"cityKey": "siirt"})
        body = (await client.get("/islands/state")).json()
        assert body["data"]["city"]["key"] == "siirt"
        assert [w["widget"] for w in body["data"]["widgets"]] == ["regional"]

    @pytest.mark.asyncio
    async def test_state_before_any_selection(self, client):
        body = (await client.get("/islands/state")).json()
        assert body["data"]["cycle"] == 0
        assert body["data"]["widgets"] == []
        assert body["data"]["modules"] == []

    @pytest.mark.asyncio
    async def test_unknown_city_404(self, client):
        response = await client.post("/islands/select", json={"cityKey": "atlantis"})
        body = response.json()
        assert response.status_code == 404
        assert body["error"]["message"] == "Unknown city profile: atlantis"

    @pytest.mark.asyncio
    async def test_unexpected_weather_field_rejected(self, client):
        response = await client.post("/islands/select", json={"cityKey": "siirt", "weather": {"humidity": 80}})
        assert response.status_code == 422


class TestWidgetRetry:

    @pytest.mark.asyncio
    async def test_retry_known_widget(self, client):
        await client.post("/islands/select", json={"cityKey": "istanbul"})
        response = await client.post("/islands/widgets/traffic/retry")
        body = response.json()
        assert response.status_code == 200
        assert body["data"]["widget"]["status"] == "ok"

    @pytest.mark.asyncio
    async def test_retry_unknown_widget(self, client):
        await client.post("/islands/select", json={"cityKey": "istanbul"})
        response = await client.post("/islands/widgets/weather/retry")
        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Unknown widget: weather"


# ---------------------------------------------------------------------------
# Demo page
# ---------------------------------------------------------------------------

class TestDemoPage:

    @pytest.mark.asyncio
    async def test_first_visit_selects_default_city(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "Active Modules for İstanbul" in response.text

    @pytest.mark.asyncio
    async def test_city_query(self, client):
        response = await client.get("/", params={"city": "erzurum"})
        assert "Palandöken" in response.text
        assert "widget-ski" in response.text

    @pytest.mark.asyncio
    async def test_unknown_city_query(self, client):
        response = await client.get("/", params={"city": "atlantis"})
        assert response.status_code == 404
