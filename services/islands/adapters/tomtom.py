"""
TomTomTrafficAdapter — live traffic from the TomTom Flow Segment Data API.

Free tier: 2,500 requests/day.

Each monitored city has a handful of monitoring points (major roads or
junctions). One refresh issues a flow request per point concurrently and
aggregates over the points that answered:

  speed ratio   = mean(currentSpeed) / mean(freeFlowSpeed)
  congestion %  = round((1 - ratio) * 100), clamped to 0-100
  level         = ratio >= 0.75 low | >= 0.5 medium | >= 0.25 high | severe

Per point:
  delay  = max(0, round((currentTravelTime - freeFlowTravelTime) / 60)) minutes
  status = ratio < 0.3 congested | < 0.6 slow | normal

Flow endpoint response (trimmed):
  {
    "flowSegmentData": {
      "currentSpeed": 31, "freeFlowSpeed": 62,
      "currentTravelTime": 240, "freeFlowTravelTime": 120,
      "confidence": 0.97, "roadClosure": false
    }
  }

A city with zero successful points yields None, never a partial record.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

import httpx

from services.islands.adapters._payload import as_bool, as_float
from services.islands.estimation.traffic import build_traffic_narrative
from services.islands.estimation.types import (
    CongestionLevel,
    RouteDelay,
    RouteStatus,
    TrafficEstimate,
    round_half_up,
    utcnow,
)
from services.islands.geo.normalize import city_key

logger = logging.getLogger(__name__)

_DEFAULT_FREE_FLOW_KMH = 50
_API_TIMEOUT_S = 8.0
_MAX_ROUTES = 6


@dataclass(frozen=True)
class MonitoringPoint:
    name: str
    lat: float
    lon: float


@dataclass(frozen=True)
class FlowSample:
    current_speed: float
    free_flow_speed: float
    current_travel_time: float
    free_flow_travel_time: float
    confidence: float
    road_closure: bool


def _p(name: str, lat: float, lon: float) -> MonitoringPoint:
    return MonitoringPoint(name=name, lat=lat, lon=lon)


CITY_TRAFFIC_POINTS: Mapping[str, tuple[MonitoringPoint, ...]] = MappingProxyType({
    # Top 10
    "istanbul": (
        _p("E-5 (Bakırköy)", 40.9867, 28.8508),
        _p("FSM Köprüsü", 41.0917, 29.0678),
        _p("D-100 (Kartal)", 40.8922, 29.1967),
        _p("15 Temmuz Köprüsü", 41.0458, 29.0342),
        _p("TEM (Seyrantepe)", 41.1064, 28.9925),
        _p("Haliç Köprüsü", 41.0342, 28.9692),
    ),
    "ankara": (
        _p("Eskişehir Yolu", 39.9167, 32.7833),
        _p("Konya Yolu", 39.8833, 32.8667),
        _p("İstanbul Yolu", 39.9667, 32.6833),
        _p("Çankaya-Kızılay", 39.9272, 32.8644),
    ),
    "izmir": (
        _p("Altınyol", 38.4192, 27.1287),
        _p("Konak-Bornova", 38.4219, 27.1389),
        _p("Çeşme Otoyolu", 38.4331, 27.0892),
    ),
    "bursa": (
        _p("İstanbul Yolu", 40.2056, 28.9500),
        _p("Mudanya Yolu", 40.2667, 28.8667),
        _p("Yalova Yolu", 40.2333, 29.0167),
    ),
    "antalya": (
        _p("D-400 (Lara)", 36.8533, 30.7267),
        _p("Akdeniz Bulvarı", 36.8867, 30.6983),
        _p("Aspendos Bulvarı", 36.8950, 30.7117),
    ),
    "konya": (
        _p("Ankara Yolu", 37.9500, 32.4833),
        _p("Meram Çevreyolu", 37.8500, 32.4500),
        _p("Karaman Yolu", 37.8200, 32.5000),
    ),
    "adana": (
        _p("Turhan Cemal Beriker", 37.0017, 35.3289),
        _p("D-400 Mersin", 36.9850, 35.2900),
        _p("Tarsus Otoyolu", 36.9917, 35.3500),
    ),
    "sanliurfa": (
        _p("Diyarbakır Yolu", 37.1700, 38.8000),
        _p("Mardin Yolu", 37.1500, 38.8200),
    ),
    "gaziantep": (
        _p("İstasyon Caddesi", 37.0628, 37.3783),
        _p("Suburcu Kavşağı", 37.0567, 37.3650),
        _p("Adana Otoyolu", 37.0500, 37.4000),
    ),
    "kocaeli": (
        _p("TEM Köprüsü", 40.7658, 29.9308),
        _p("Gebze Çıkışı", 40.8028, 29.4308),
        _p("D-100 Merkez", 40.7650, 29.9200),
    ),
    # 11-20
    "mersin": (_p("D-400 Merkez", 36.7950, 34.6200), _p("Tarsus Yolu", 36.8100, 34.6500)),
    "diyarbakir": (_p("Elazığ Yolu", 37.9200, 40.2000), _p("Mardin Yolu", 37.8800, 40.2200)),
    "hatay": (_p("Antakya Merkez", 36.2000, 36.1600), _p("İskenderun Yolu", 36.5800, 36.1700)),
    "manisa": (_p("İzmir Yolu", 38.6200, 27.4000), _p("Merkez Kavşak", 38.6150, 27.4300)),
    "kayseri": (_p("Sivas Yolu", 38.7500, 35.5000), _p("Erciyes Yolu", 38.7200, 35.4500)),
    "samsun": (_p("Sahil Yolu", 41.2900, 36.3300), _p("Ankara Yolu", 41.2700, 36.3500)),
    "balikesir": (_p("Bursa Yolu", 39.6500, 27.9000), _p("İzmir Yolu", 39.6400, 27.8500)),
    "tekirdag": (_p("İstanbul Yolu", 41.0000, 27.5500), _p("Çorlu Kavşağı", 41.1500, 27.8000)),
    "aydin": (_p("İzmir Yolu", 37.8500, 27.8200), _p("Denizli Yolu", 37.8400, 27.8600)),
    "van": (_p("Erciş Yolu", 38.5200, 43.3500), _p("İran Sınırı Yolu", 38.5000, 43.4500)),
    # 21-25
    "kahramanmaras": (_p("Gaziantep Yolu", 37.5800, 36.9300), _p("Adana Yolu", 37.5600, 36.9500)),
    "sakarya": (_p("TEM Otoyolu", 40.7400, 30.3500), _p("İstanbul Yolu", 40.7500, 30.4000)),
    "mugla": (_p("Bodrum Yolu", 37.2100, 28.3500), _p("Fethiye Yolu", 37.2200, 28.3800)),
    "denizli": (_p("İzmir Yolu", 37.7800, 29.0700), _p("Antalya Yolu", 37.7700, 29.1000)),
    "eskisehir": (_p("Ankara Yolu", 39.7800, 30.5500), _p("Bursa Yolu", 39.7700, 30.5000)),
    # Tourist towns
    "alanya": (_p("D-400 Kaleiçi", 36.5400, 32.0000),),
    "bodrum": (_p("Turgutreis Yolu", 37.0300, 27.4200),),
    "marmaris": (_p("İçmeler Yolu", 36.8500, 28.2700),),
    "fethiye": (_p("Ölüdeniz Yolu", 36.6500, 29.1200),),
})


def has_traffic_monitoring(city: str) -> bool:
    """True when the city (any Turkish spelling or case) has monitoring points."""
    return city_key(city) in CITY_TRAFFIC_POINTS


def get_monitored_cities() -> list[str]:
    return list(CITY_TRAFFIC_POINTS)


def _parse_flow(payload: dict[str, Any]) -> FlowSample | None:
    """Extract flow fields; malformed or missing values default inline, a missing segment is a failure."""
    flow = payload.get("flowSegmentData")
    if not isinstance(flow, dict):
        return None
    return FlowSample(
        current_speed=max(0.0, as_float(flow.get("currentSpeed"))),
        # Non-positive free-flow speed would break the speed ratio
        free_flow_speed=max(0.0, as_float(flow.get("freeFlowSpeed"))) or _DEFAULT_FREE_FLOW_KMH,
        current_travel_time=as_float(flow.get("currentTravelTime")),
        free_flow_travel_time=as_float(flow.get("freeFlowTravelTime")),
        confidence=as_float(flow.get("confidence")),
        road_closure=as_bool(flow.get("roadClosure", False)),
    )


def congestion_level_for_ratio(speed_ratio: float) -> CongestionLevel:
    if speed_ratio >= 0.75:
        return CongestionLevel.LOW
    if speed_ratio >= 0.5:
        return CongestionLevel.MEDIUM
    if speed_ratio >= 0.25:
        return CongestionLevel.HIGH
    return CongestionLevel.SEVERE


def _route_for(name: str, sample: FlowSample) -> RouteDelay:
    delay = max(0, round_half_up((sample.current_travel_time - sample.free_flow_travel_time) / 60))
    ratio = sample.current_speed / sample.free_flow_speed
    if ratio < 0.3:
        status = RouteStatus.CONGESTED
    elif ratio < 0.6:
        status = RouteStatus.SLOW
    else:
        status = RouteStatus.NORMAL
    return RouteDelay(name=name, delay_minutes=delay, status=status)


def aggregate_flow(
    city: str,
    samples: list[tuple[MonitoringPoint, FlowSample | None]],
    max_routes: int = _MAX_ROUTES,
) -> TrafficEstimate | None:
    """Fold per-point samples into a city record. None if no point succeeded."""
    ok = [(point, sample) for point, sample in samples if sample is not None]
    if not ok:
        return None

    avg_current = sum(s.current_speed for _, s in ok) / len(ok)
    avg_free = sum(s.free_flow_speed for _, s in ok) / len(ok)
    ratio = avg_current / avg_free

    percent = max(0, min(100, round_half_up((1 - ratio) * 100)))
    level = congestion_level_for_ratio(ratio)

    routes = [_route_for(point.name, sample) for point, sample in ok]
    routes.sort(key=lambda r: r.delay_minutes, reverse=True)
    routes = routes[:max_routes]

    return TrafficEstimate(
        city=city,
        congestion_level=level,
        congestion_percent=percent,
        routes=tuple(routes),
        average_speed_kmh=round_half_up(avg_current),
        narrative=build_traffic_narrative(city, level, routes),
        last_updated=utcnow(),
        source="tomtom",
    )


class TomTomTrafficAdapter:
    """
    TomTom Flow Segment Data client.

    Usage:
        adapter = TomTomTrafficAdapter(api_key="...")
        traffic = await adapter.fetch("İstanbul")
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.tomtom.com/traffic/services/4/flowSegmentData",
        timeout_s: float = _API_TIMEOUT_S,
        max_routes: int = _MAX_ROUTES,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            api_key:    TomTom key (TOMTOM_API_KEY env var). Empty disables fetching.
            base_url:   Flow Segment Data endpoint root.
            timeout_s:  Per-request timeout.
            max_routes: Routes kept in the record, worst first.
            transport:  Optional httpx transport (tests inject httpx.MockTransport).
        """
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._max_routes = max_routes
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    async def _fetch_point(self, client: httpx.AsyncClient, point: MonitoringPoint) -> FlowSample | None:
        """One flow request. Errors are logged and return None."""
        try:
            resp = await client.get(
                f"{self._base_url}/absolute/10/json",
                params={
                    "key": self._api_key,
                    "point": f"{point.lat},{point.lon}",
                    "unit": "KMPH",
                },
            )
            resp.raise_for_status()
            raw = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "TomTom returned %d for point=%r",
                exc.response.status_code,
                point.name,
            )
            return None
        except Exception:
            logger.exception("TomTom fetch failed for point=%r", point.name)
            return None

        sample = _parse_flow(raw) if isinstance(raw, dict) else None
        if sample is None:
            logger.warning("TomTom response for point=%r has no flowSegmentData", point.name)
        return sample

    async def fetch(self, city: str) -> TrafficEstimate | None:
        """
        Fetch live traffic for a monitored city.

        Returns None for an unmonitored city, a missing API key, or when every
        monitoring point failed. Never raises for network or payload errors.
        """
        points = CITY_TRAFFIC_POINTS.get(city_key(city))
        if not points:
            logger.info("TomTom: %s is not a monitored city", city)
            return None

        if not self._api_key:
            logger.warning("TOMTOM_API_KEY not set; skipping traffic fetch for %r", city)
            return None

        async with httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport) as client:
            samples = await asyncio.gather(*(self._fetch_point(client, p) for p in points))

        try:
            result = aggregate_flow(city, list(zip(points, samples)), max_routes=self._max_routes)
        except Exception:
            logger.exception("TomTom: aggregation failed for %s", city)
            return None

        if result is None:
            logger.error("TomTom: no valid data for %s (%d points)", city, len(points))
            return None

        logger.info(
            "TomTom: %s - %s (%d%% congestion, %d/%d points)",
            city,
            result.congestion_level.value,
            result.congestion_percent,
            sum(1 for s in samples if s is not None),
            len(points),
        )
        return result
