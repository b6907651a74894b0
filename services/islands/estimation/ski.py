"""
Ski conditions — derived entirely from base-station weather.

  summit temp   = base temp - 6.5°C per 1000 m of vertical
  fresh snow    = 10 mm snow per 1 mm water, only when the summit is <= 0°C
  snow depth    = (50 + elevation bonus) * month factor + fresh snow
  lifts open    = total * compounding reductions (depth, wind, visibility),
                  at least 1 unless the resort is closed

Deterministic: the same inputs and month always give the same record apart
from `last_updated`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Mapping
from zoneinfo import ZoneInfo

from services.islands.estimation.types import (
    AvalancheRisk,
    SkiEstimate,
    SnowCondition,
    Visibility,
    round_half_up,
    utcnow,
)
from services.islands.geo.normalize import city_key

logger = logging.getLogger(__name__)

_LOCAL_TZ = ZoneInfo("Europe/Istanbul")

LAPSE_RATE_C_PER_KM = 6.5
SNOW_TO_WATER_RATIO = 10
MIN_OPERATING_DEPTH_CM = 30


@dataclass(frozen=True)
class SkiResortInfo:
    name: str
    city: str
    base_elevation_m: int
    summit_elevation_m: int
    total_lifts: int
    season_start: int  # month 1-12
    season_end: int


SKI_RESORTS: Mapping[str, SkiResortInfo] = MappingProxyType({
    "erzurum": SkiResortInfo("Palandöken", "Erzurum", 2200, 3176, 14, 11, 4),
    "kayseri": SkiResortInfo("Erciyes", "Kayseri", 2100, 3400, 18, 11, 4),
    "bursa": SkiResortInfo("Uludağ", "Bursa", 1750, 2543, 24, 12, 3),
    "bolu": SkiResortInfo("Kartalkaya", "Bolu", 1850, 2200, 10, 12, 3),
    "kars": SkiResortInfo("Sarıkamış", "Kars", 2100, 2634, 6, 11, 4),
    "kastamonu": SkiResortInfo("Ilgaz", "Kastamonu", 1800, 2546, 8, 12, 3),
    "antalya": SkiResortInfo("Saklıkent", "Antalya", 1850, 2400, 4, 12, 3),
    "isparta": SkiResortInfo("Davraz", "Isparta", 1650, 2635, 6, 12, 3),
})

# Share of the seasonal base depth present in each month
_MONTH_FACTORS: Mapping[int, float] = MappingProxyType({
    11: 0.3,  # early season
    12: 0.6,
    1: 1.0,   # peak
    2: 1.0,
    3: 0.7,   # melt starts
    4: 0.3,   # spring skiing
})

_CONDITION_TEXT: dict[SnowCondition, str] = {
    SnowCondition.POWDER: "Pistler mükemmel durumda, toz kar var.",
    SnowCondition.PACKED: "Pistler iyi durumda.",
    SnowCondition.ICY: "Buzlanma var, dikkatli kayın.",
    SnowCondition.SLUSHY: "Kar erimeye başladı, sabah saatleri ideal.",
}


def is_in_season(start: int, end: int, month: int) -> bool:
    """Month-range check; windows like Nov-Apr wrap the year boundary."""
    if start <= end:
        return start <= month <= end
    return month >= start or month <= end


def elevation_bonus(summit_m: float) -> float:
    """+1 cm of base depth per 10 m of summit above 2000 m."""
    return max(0.0, (summit_m - 2000) / 10)


def seasonal_snow_depth(month: int, summit_m: float, fresh_snow_cm: float) -> int:
    factor = _MONTH_FACTORS.get(month, 0.0)
    base_depth = (50 + elevation_bonus(summit_m)) * factor
    return round_half_up(base_depth + fresh_snow_cm)


def summit_temperature(base_temp_c: float, resort: SkiResortInfo) -> int:
    vertical_km = (resort.summit_elevation_m - resort.base_elevation_m) / 1000
    return round_half_up(base_temp_c - vertical_km * LAPSE_RATE_C_PER_KM)


def snow_condition_for(temp_c: float, fresh_cm: float, depth_cm: float, in_season: bool) -> SnowCondition:
    if not in_season or depth_cm < MIN_OPERATING_DEPTH_CM:
        return SnowCondition.CLOSED
    if fresh_cm > 20 and temp_c < -5:
        return SnowCondition.POWDER
    if temp_c > 0:
        return SnowCondition.SLUSHY
    if temp_c < -15:
        return SnowCondition.ICY
    return SnowCondition.PACKED


def avalanche_risk_for(fresh_cm: float, wind_kmh: float, temp_c: float) -> AvalancheRisk:
    score = 0

    # Fresh load
    if fresh_cm > 50:
        score += 3
    elif fresh_cm > 30:
        score += 2
    elif fresh_cm > 15:
        score += 1

    # Wind loading
    if wind_kmh > 50:
        score += 2
    elif wind_kmh > 30:
        score += 1

    # Near-freezing instability
    if -3 < temp_c < 2:
        score += 1

    if score >= 4:
        return AvalancheRisk.HIGH
    if score >= 3:
        return AvalancheRisk.CONSIDERABLE
    if score >= 1:
        return AvalancheRisk.MODERATE
    return AvalancheRisk.LOW


def visibility_for(cloud_cover_pct: float, wind_kmh: float) -> Visibility:
    if cloud_cover_pct > 80 or wind_kmh > 50:
        return Visibility.POOR
    if cloud_cover_pct > 50 or wind_kmh > 30:
        return Visibility.MODERATE
    return Visibility.GOOD


def open_lifts(
    total: int,
    depth_cm: float,
    wind_kmh: float,
    visibility: Visibility,
    condition: SnowCondition,
) -> int:
    if condition is SnowCondition.CLOSED:
        return 0

    share = 1.0
    if depth_cm < 50:
        share *= 0.5
    if wind_kmh > 60:
        share *= 0.3
    elif wind_kmh > 40:
        share *= 0.6
    if visibility is Visibility.POOR:
        share *= 0.7

    return max(1, round_half_up(total * share))


def build_ski_narrative(
    resort_name: str,
    depth_cm: int,
    fresh_cm: int,
    condition: SnowCondition,
    avalanche: AvalancheRisk,
    lifts_open: int,
    lifts_total: int,
    in_season: bool,
) -> str:
    if condition is SnowCondition.CLOSED:
        reason = "Yeterli kar yok." if in_season else "Sezon dışı."
        return f"{resort_name} şu an kapalı. Kar kalınlığı {depth_cm} cm. {reason}"

    narrative = f"Kar kalınlığı {depth_cm} cm. "
    if fresh_cm > 10:
        narrative += f"Son 24 saatte {fresh_cm} cm taze kar yağdı! "

    narrative += _CONDITION_TEXT[condition]

    if lifts_open < lifts_total:
        narrative += f" {lifts_open}/{lifts_total} teleferik açık."
    else:
        narrative += " Tüm teleferikler açık."

    if avalanche is AvalancheRisk.HIGH:
        narrative += " ⚠️ Çığ riski yüksek!"

    return narrative


def calculate_ski_conditions(
    resort_key: str,
    current_temp: float,
    precipitation: float,
    wind_speed: float,
    cloud_cover: float,
    snowfall_mm: float = 0,
    *,
    month: int | None = None,
    now: datetime | None = None,
) -> SkiEstimate | None:
    """Estimate resort conditions from base-station weather.

    Args:
        resort_key: City or resort key (normalised); see SKI_RESORTS.
        current_temp: Base temperature, °C.
        precipitation: Water equivalent over the last 24 h, mm.
        wind_speed: km/h.
        cloud_cover: 0-100 %.
        snowfall_mm: Reported snowfall depth in mm; when positive it replaces
            the precipitation-derived fresh snow on a frozen summit.
        month: Calendar month override; defaults to the local month of `now`.

    Returns None for an unknown resort.
    """
    resort = SKI_RESORTS.get(city_key(resort_key))
    if resort is None:
        return None

    if month is None:
        month = (now or datetime.now(_LOCAL_TZ)).month
    in_season = is_in_season(resort.season_start, resort.season_end, month)

    summit_temp = summit_temperature(current_temp, resort)

    fresh = 0
    depth = 0
    if summit_temp <= 0 and snowfall_mm > 0:
        fresh = round_half_up(snowfall_mm / 10)
    elif summit_temp <= 0 and precipitation > 0:
        # mm water -> mm snow -> cm
        fresh = round_half_up(precipitation * SNOW_TO_WATER_RATIO / 10)

    if fresh > 0:
        depth = seasonal_snow_depth(month, resort.summit_elevation_m, fresh)
    elif in_season:
        depth = seasonal_snow_depth(month, resort.summit_elevation_m, 0)

    condition = snow_condition_for(summit_temp, fresh, depth, in_season)
    avalanche = avalanche_risk_for(fresh, wind_speed, summit_temp)
    visibility = visibility_for(cloud_cover, wind_speed)
    lifts = open_lifts(resort.total_lifts, depth, wind_speed, visibility, condition)

    return SkiEstimate(
        resort=resort.name,
        snow_depth_cm=depth,
        fresh_snow_24h_cm=fresh,
        base_temp_c=current_temp,
        summit_temp_c=summit_temp,
        lifts_open=lifts,
        lifts_total=resort.total_lifts,
        avalanche_risk=avalanche,
        snow_condition=condition,
        visibility=visibility,
        narrative=build_ski_narrative(
            resort.name, depth, fresh, condition, avalanche, lifts, resort.total_lifts, in_season
        ),
        last_updated=utcnow(),
    )


def has_ski_resort(city: str) -> bool:
    return city_key(city) in SKI_RESORTS
