"""Tests for MarineAdapter (Open-Meteo Marine stubbed with httpx.MockTransport)."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

import httpx
import pytest

from services.islands.adapters.marine import MarineAdapter, parse_marine
from services.islands.estimation.types import FerryStatus, SwimSafety

TEN_AM = datetime(2025, 7, 20, 10, 0, tzinfo=ZoneInfo("Europe/Istanbul"))


def _payload(sst_at_10: float | None = 24.6) -> dict:
    sst = [23.0] * 24
    sst[10] = sst_at_10
    return {
        "current": {
            "wave_height": 0.4,
            "wave_direction": 180,
            "wave_period": 5.2,
            "wind_wave_height": 0.3,
            "swell_wave_height": 0.2,
        },
        "hourly": {"sea_surface_temperature": sst},
    }


def _adapter(handler) -> MarineAdapter:
    return MarineAdapter(base_url="https://marine.test/v1/marine", transport=httpx.MockTransport(handler))


class TestParse:

    def test_uses_current_hour_sst(self):
        marine = parse_marine("Antalya", _payload(), hour=10)
        assert marine.sea_temp_c == 24.6
        assert marine.wave_height_m == 0.4
        assert marine.wave_period_s == 5
        assert marine.swell_height_m == 0.2

    def test_missing_sst_defaults(self):
        assert parse_marine("Antalya", _payload(None), hour=10).sea_temp_c == 18.0
        assert parse_marine("Antalya", {"current": {}}, hour=3).sea_temp_c == 18.0

    def test_missing_wave_fields_default_to_zero(self):
        marine = parse_marine("Antalya", {}, hour=0)
        assert marine.wave_height_m == 0
        assert marine.ferry_status is FerryStatus.NORMAL


class TestFetch:

    async def test_success(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_payload())

        result = await _adapter(handler).fetch("Antalya", now=TEN_AM)

        assert result.source == "open-meteo"
        assert result.sea_temp_c == 24.6
        assert result.swim_safety is SwimSafety.SAFE
        assert result.narrative == "Deniz yüzmeye çok uygun! Su sıcaklığı 24.6°C. Hafif dalgalar var."

        params = seen[0].url.params
        assert params["latitude"] == "36.4"
        assert params["longitude"] == "30.7"
        assert "wave_height" in params["current"].split(",")
        assert params["hourly"] == "sea_surface_temperature"
        assert params["timezone"] == "Europe/Istanbul"

    async def test_inland_city_skips_request(self):
        seen = []
        adapter = _adapter(lambda req: seen.append(req) or httpx.Response(200, json=_payload()))
        assert await adapter.fetch("Siirt", now=TEN_AM) is None
        assert seen == []

    @pytest.mark.parametrize("status", [400, 429, 500])
    async def test_http_errors_return_none(self, status):
        result = await _adapter(lambda req: httpx.Response(status, json={"reason": "x"})).fetch("izmir", now=TEN_AM)
        assert result is None

    async def test_network_error_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        assert await _adapter(handler).fetch("izmir", now=TEN_AM) is None

    async def test_non_object_payload_returns_none(self):
        assert await _adapter(lambda req: httpx.Response(200, json=[1, 2])).fetch("izmir", now=TEN_AM) is None


class TestMalformedPayload:
    """Wrong-typed fields are coerced or defaulted, never raised."""

    def test_string_numbers_are_coerced(self):
        marine = parse_marine("Antalya", {"current": {"wave_height": "1.2", "wave_period": "6.5"}}, hour=0)
        assert marine.wave_height_m == 1.2
        assert marine.wave_period_s == 7
        assert marine.ferry_status is FerryStatus.DELAYED

    def test_garbage_fields_default(self):
        payload = {
            "current": {"wave_height": {"value": 1}, "wave_period": "calm", "swell_wave_height": [0.4]},
            "hourly": {"sea_surface_temperature": "warm"},
        }
        marine = parse_marine("Antalya", payload, hour=10)
        assert marine.wave_height_m == 0
        assert marine.wave_period_s == 0
        assert marine.swell_height_m == 0
        assert marine.sea_temp_c == 18.0

    def test_wrong_container_types(self):
        marine = parse_marine("Antalya", {"current": [1, 2], "hourly": None}, hour=10)
        assert marine.wave_height_m == 0
        assert marine.sea_temp_c == 18.0

    async def test_fetch_with_string_wave_height(self):
        result = await _adapter(
            lambda req: httpx.Response(200, json={"current": {"wave_height": "1.2"}})
        ).fetch("istanbul", now=TEN_AM)
        assert result is not None
        assert result.wave_height_m == 1.2
