"""
Traffic estimation — algorithmic, no external API required.

Inputs:
  1. Time-of-day curve (weekday vs weekend/holiday), indexed by hour
  2. City calibration (İstanbul = 1.0, unknown cities = 0.4)
  3. Rain multiplier (x1.3)
  4. Uniform noise of ±10 points from an injectable random source

Congestion percent thresholds:
  < 25 low | < 50 medium | < 75 high | otherwise severe

Per-route delays are the base congestion perturbed by a downward-biased
noise term, scaled to 0-45 minutes:
  > 20 min congested | > 10 min slow | otherwise normal

Pass a seeded `random.Random` to make the output reproducible.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Mapping
from zoneinfo import ZoneInfo

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

_LOCAL_TZ = ZoneInfo("Europe/Istanbul")

# Base congestion 0-100 by hour (00-23)
WEEKDAY_PATTERN: tuple[int, ...] = (
    5, 5, 5, 5, 10, 25,      # 00-05 night
    45, 75, 85, 60, 40, 35,  # 06-11 morning rush
    40, 45, 40, 45, 55, 80,  # 12-17 afternoon
    90, 75, 55, 35, 20, 10,  # 18-23 evening rush
)

WEEKEND_PATTERN: tuple[int, ...] = (
    5, 5, 5, 5, 5, 10,       # 00-05 night
    15, 20, 30, 45, 55, 60,  # 06-11 late morning
    55, 50, 45, 50, 55, 60,  # 12-17 afternoon shopping
    55, 45, 35, 25, 15, 10,  # 18-23 evening
)

CITY_MULTIPLIERS: Mapping[str, float] = MappingProxyType({
    "istanbul": 1.0,
    "ankara": 0.7,
    "izmir": 0.65,
    "kocaeli": 0.6,
    "bursa": 0.55,
    "antalya": 0.5,
    "gaziantep": 0.5,
    "adana": 0.45,
})

_DEFAULT_MULTIPLIER = 0.4
_RAIN_MULTIPLIER = 1.3
_NOISE_SPAN = 20.0          # ±10 points
_ROUTE_NOISE_SPAN = 30.0
_ROUTE_NOISE_BIAS = 0.3     # centre the route noise below zero
_MAX_DELAY_MIN = 45
_MAX_ROUTES = 6

_FREE_FLOW_SPEED_KMH = 50
_GRIDLOCK_SPEED_KMH = 15

CITY_ROUTES: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "istanbul": (
        "E-5 (Avcılar-Bakırköy)",
        "FSM Köprüsü",
        "D-100 (Kadıköy-Kartal)",
        "15 Temmuz Köprüsü",
        "TEM (Seyrantepe)",
        "Bağdat Caddesi",
        "Fatih Sultan Mehmet Köprüsü Bağlantısı",
        "Haliç Köprüsü",
    ),
    "ankara": (
        "Eskişehir Yolu",
        "Konya Yolu",
        "Samsun Yolu",
        "İstanbul Yolu",
        "Çankaya-Kızılay",
        "Atatürk Bulvarı",
    ),
    "izmir": (
        "Altınyol",
        "Konak-Bornova",
        "Çeşme Otoyolu",
        "Karşıyaka Sahil",
        "Mavişehir-Alsancak",
    ),
    "bursa": (
        "İstanbul Yolu",
        "Yalova Yolu",
        "Mudanya Yolu",
        "FSM Bulvarı",
    ),
    "antalya": (
        "D-400 (Lara)",
        "Akdeniz Bulvarı",
        "Aspendos Bulvarı",
        "Konyaaltı Caddesi",
    ),
})

_LEVEL_DESCRIPTIONS: dict[CongestionLevel, str] = {
    CongestionLevel.LOW: "akıcı",
    CongestionLevel.MEDIUM: "yoğun",
    CongestionLevel.HIGH: "çok yoğun",
    CongestionLevel.SEVERE: "kilitli",
}


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def congestion_level_for_percent(percent: float) -> CongestionLevel:
    if percent < 25:
        return CongestionLevel.LOW
    if percent < 50:
        return CongestionLevel.MEDIUM
    if percent < 75:
        return CongestionLevel.HIGH
    return CongestionLevel.SEVERE


def route_status_for_delay(delay_minutes: int) -> RouteStatus:
    if delay_minutes > 20:
        return RouteStatus.CONGESTED
    if delay_minutes > 10:
        return RouteStatus.SLOW
    return RouteStatus.NORMAL


def _time_context(hour: int) -> str:
    if 7 <= hour <= 9:
        return "sabah"
    if 17 <= hour <= 19:
        return "akşam"
    if 12 <= hour <= 14:
        return "öğle"
    return ""


def _route_delays(key: str, base: float, rng: random.Random) -> list[RouteDelay]:
    names = CITY_ROUTES.get(key) or CITY_ROUTES["istanbul"][:4]

    routes = []
    for name in names[:_MAX_ROUTES]:
        variance = (rng.random() - _ROUTE_NOISE_BIAS) * _ROUTE_NOISE_SPAN
        route_congestion = _clamp(base + variance)
        delay = round_half_up(route_congestion / 100 * _MAX_DELAY_MIN)
        routes.append(RouteDelay(name=name, delay_minutes=delay, status=route_status_for_delay(delay)))

    # Stable sort: equal delays keep their registry order
    routes.sort(key=lambda r: r.delay_minutes, reverse=True)
    return routes


def average_speed_for(congestion_percent: float) -> int:
    """City driving speed: ~50 km/h free flow down to ~15 km/h at gridlock."""
    span = _FREE_FLOW_SPEED_KMH - _GRIDLOCK_SPEED_KMH
    return round_half_up(_FREE_FLOW_SPEED_KMH - congestion_percent / 100 * span)


def build_traffic_narrative(
    city: str,
    level: CongestionLevel,
    routes: Iterable[RouteDelay],
    *,
    time_context: str = "",
    is_raining: bool = False,
) -> str:
    """Turkish one-paragraph summary: level, worst route, congested route count."""
    routes = list(routes)
    when = f"{time_context} saatlerinde " if time_context else ""
    narrative = f"{city} trafiği {when}{_LEVEL_DESCRIPTIONS[level]} seyrediyor."

    if is_raining:
        narrative += " Yağmur nedeniyle sürüş süresi artabilir."

    worst = routes[0] if routes else None
    if worst is not None and worst.delay_minutes > 5:
        narrative += f" {worst.name} güzergahında {worst.delay_minutes} dakika gecikme var."

    congested = sum(1 for r in routes if r.status is RouteStatus.CONGESTED)
    if congested > 1:
        narrative += f" {congested} ana güzergahta yoğunluk mevcut."

    if level is CongestionLevel.SEVERE:
        narrative += " Ana arterlerde ciddi gecikmeler var."

    return narrative


def estimate_traffic(
    city: str,
    is_raining: bool = False,
    is_holiday: bool = False,
    hour: int | None = None,
    *,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> TrafficEstimate:
    """Estimate city traffic from time, weather and calibration tables.

    Args:
        city: Display name or key; the key is normalised for table lookups.
        is_raining: Applies the rain multiplier.
        is_holiday: Uses the weekend curve on a weekday.
        hour: Hour override (0-23); defaults to the local hour of `now`.
        rng: Noise source. A fresh unseeded Random when omitted.
        now: Local clock used for hour and weekday (Europe/Istanbul).
    """
    rng = rng or random.Random()
    now = now or datetime.now(_LOCAL_TZ)
    hour = now.hour if hour is None else hour
    if not 0 <= hour <= 23:
        raise ValueError(f"hour must be within 0-23, got {hour}")

    key = city_key(city)
    is_weekend = now.weekday() >= 5

    pattern = WEEKEND_PATTERN if (is_weekend or is_holiday) else WEEKDAY_PATTERN
    base = pattern[hour] * CITY_MULTIPLIERS.get(key, _DEFAULT_MULTIPLIER)

    if is_raining:
        base *= _RAIN_MULTIPLIER

    base = _clamp(base + (rng.random() - 0.5) * _NOISE_SPAN)

    level = congestion_level_for_percent(base)
    routes = _route_delays(key, base, rng)
    narrative = build_traffic_narrative(
        city,
        level,
        routes,
        time_context=_time_context(hour),
        is_raining=is_raining,
    )

    logger.debug("Traffic estimate for %s at %02d:00: %.1f%% (%s)", key, hour, base, level.value)

    return TrafficEstimate(
        city=city,
        congestion_level=level,
        congestion_percent=round_half_up(base),
        routes=tuple(routes),
        average_speed_kmh=average_speed_for(base),
        narrative=narrative,
        last_updated=utcnow(),
    )


def is_metro_city(city: str) -> bool:
    """True when the city has its own traffic calibration."""
    return city_key(city) in CITY_MULTIPLIERS
