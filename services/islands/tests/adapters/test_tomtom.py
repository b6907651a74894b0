"""
Tests for TomTomTrafficAdapter.

All tests run without network access: TomTom is stubbed with httpx.MockTransport.

Coverage targets:
  - Turkish-aware monitoring predicate
  - aggregation over successful points only
  - None when zero points succeed (never a partial record)
  - missing key / unmonitored city short-circuit
  - request shape (path, key, point, unit)
"""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from services.islands.adapters.tomtom import (
    CITY_TRAFFIC_POINTS,
    FlowSample,
    TomTomTrafficAdapter,
    _parse_flow,
    aggregate_flow,
    congestion_level_for_ratio,
    get_monitored_cities,
    has_traffic_monitoring,
)
from services.islands.estimation.types import CongestionLevel, RouteStatus


def _flow(current: float, free: float, current_tt: float = 240, free_tt: float = 120) -> dict[str, Any]:
    return {
        "flowSegmentData": {
            "currentSpeed": current,
            "freeFlowSpeed": free,
            "currentTravelTime": current_tt,
            "freeFlowTravelTime": free_tt,
            "confidence": 0.95,
            "roadClosure": False,
        }
    }


def _adapter(handler, **kwargs) -> TomTomTrafficAdapter:
    kwargs.setdefault("api_key", "test-key")
    return TomTomTrafficAdapter(transport=httpx.MockTransport(handler), **kwargs)


class TestMonitoringPredicate:

    @pytest.mark.parametrize("city", ["İstanbul", "istanbul", "ISTANBUL", "Şanlıurfa", "Muğla"])
    def test_monitored(self, city):
        assert has_traffic_monitoring(city) is True

    @pytest.mark.parametrize("city", ["Siirt", "Erzurum", ""])
    def test_not_monitored(self, city):
        assert has_traffic_monitoring(city) is False

    def test_monitored_cities_listed(self):
        cities = get_monitored_cities()
        assert "istanbul" in cities
        assert len(cities) == len(CITY_TRAFFIC_POINTS)


class TestParsing:

    def test_missing_segment_is_failure(self):
        assert _parse_flow({}) is None
        assert _parse_flow({"flowSegmentData": None}) is None

    def test_missing_fields_default(self):
        sample = _parse_flow({"flowSegmentData": {}})
        assert sample.current_speed == 0
        assert sample.free_flow_speed == 50
        assert sample.road_closure is False

    @pytest.mark.parametrize(
        "ratio, level",
        [(1.0, CongestionLevel.LOW), (0.75, CongestionLevel.LOW), (0.6, CongestionLevel.MEDIUM), (0.3, CongestionLevel.HIGH), (0.1, CongestionLevel.SEVERE)],
    )
    def test_ratio_thresholds(self, ratio, level):
        assert congestion_level_for_ratio(ratio) is level

    def test_aggregate_sorts_and_truncates(self):
        points = CITY_TRAFFIC_POINTS["istanbul"]
        samples = [
            (p, FlowSample(40, 60, 120 + 60 * i, 120, 0.9, False))
            for i, p in enumerate(points)
        ]
        result = aggregate_flow("İstanbul", samples, max_routes=3)
        assert [r.delay_minutes for r in result.routes] == [5, 4, 3]
        assert result.routes[0].name == points[5].name

    def test_aggregate_with_no_successes(self):
        points = CITY_TRAFFIC_POINTS["ankara"]
        assert aggregate_flow("Ankara", [(p, None) for p in points]) is None


class TestFetch:

    async def test_all_points_succeed(self):
        result = await _adapter(lambda req: httpx.Response(200, json=_flow(30, 60))).fetch("İstanbul")

        assert result is not None
        assert result.source == "tomtom"
        assert result.congestion_percent == 50
        assert result.congestion_level is CongestionLevel.MEDIUM
        assert result.average_speed_kmh == 30
        assert len(result.routes) == 6
        assert all(r.delay_minutes == 2 and r.status is RouteStatus.SLOW for r in result.routes)
        assert result.narrative.startswith("İstanbul trafiği yoğun seyrediyor.")

    async def test_request_shape(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_flow(50, 60))

        await _adapter(handler, base_url="https://tomtom.test/flow/").fetch("izmir")

        assert len(seen) == len(CITY_TRAFFIC_POINTS["izmir"])
        first = seen[0]
        assert first.url.path == "/flow/absolute/10/json"
        assert first.url.params["key"] == "test-key"
        assert first.url.params["unit"] == "KMPH"
        points = {f"{p.lat},{p.lon}" for p in CITY_TRAFFIC_POINTS["izmir"]}
        assert {r.url.params["point"] for r in seen} == points

    async def test_partial_failure_averages_successes_only(self):
        failing = {f"{p.lat},{p.lon}" for p in CITY_TRAFFIC_POINTS["istanbul"][:3]}

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params["point"] in failing:
                return httpx.Response(500, json={"error": "boom"})
            return httpx.Response(200, json=_flow(45, 60))

        result = await _adapter(handler).fetch("istanbul")

        assert result is not None
        assert len(result.routes) == 3
        assert result.congestion_percent == 25
        assert result.congestion_level is CongestionLevel.LOW
        assert {r.name for r in result.routes} == {p.name for p in CITY_TRAFFIC_POINTS["istanbul"][3:]}

    async def test_network_errors_count_as_failures(self):
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            if calls["n"] == 1:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json=_flow(60, 60, 120, 120))

        result = await _adapter(handler).fetch("antalya")
        assert result is not None
        assert len(result.routes) == len(CITY_TRAFFIC_POINTS["antalya"]) - 1

    async def test_zero_successes_returns_none(self):
        result = await _adapter(lambda req: httpx.Response(503)).fetch("ankara")
        assert result is None

    async def test_missing_segment_everywhere_returns_none(self):
        result = await _adapter(lambda req: httpx.Response(200, json={"unexpected": True})).fetch("ankara")
        assert result is None

    async def test_missing_key_skips_requests(self):
        seen = []
        adapter = _adapter(lambda req: seen.append(req) or httpx.Response(200, json=_flow(30, 60)), api_key="")
        assert adapter.enabled is False
        assert await adapter.fetch("istanbul") is None
        assert seen == []

    async def test_unmonitored_city_returns_none(self):
        seen = []
        adapter = _adapter(lambda req: seen.append(req) or httpx.Response(200, json=_flow(30, 60)))
        assert await adapter.fetch("Siirt") is None
        assert seen == []

    async def test_max_routes_respected(self):
        result = await _adapter(lambda req: httpx.Response(200, json=_flow(30, 60)), max_routes=2).fetch("istanbul")
        assert len(result.routes) == 2


class TestMalformedPayload:
    """Wrong-typed flow fields are coerced or defaulted, never raised."""

    def test_string_speeds_are_coerced(self):
        sample = _parse_flow({"flowSegmentData": {"currentSpeed": "30", "freeFlowSpeed": "60"}})
        assert sample.current_speed == 30.0
        assert sample.free_flow_speed == 60.0

    @pytest.mark.parametrize("free_flow", [0, "0", -20, "fast", None, [60]])
    def test_unusable_free_flow_falls_back(self, free_flow):
        sample = _parse_flow({"flowSegmentData": {"currentSpeed": 25, "freeFlowSpeed": free_flow}})
        assert sample.free_flow_speed == 50

    def test_road_closure_flag(self):
        assert _parse_flow({"flowSegmentData": {"roadClosure": "true"}}).road_closure is True
        assert _parse_flow({"flowSegmentData": {"roadClosure": "false"}}).road_closure is False

    async def test_fetch_with_string_fields(self):
        payload = {"flowSegmentData": {"currentSpeed": "30", "freeFlowSpeed": "60", "currentTravelTime": "240", "freeFlowTravelTime": 120}}
        result = await _adapter(lambda req: httpx.Response(200, json=payload)).fetch("ankara")
        assert result is not None
        assert result.congestion_percent == 50
        assert all(r.delay_minutes == 2 for r in result.routes)
