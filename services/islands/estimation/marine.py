"""
Marine heuristics.

Derived fields shared by the Open-Meteo adapter and the climatology fallback:

  ferry status  wave >= 2.0 m cancelled | >= 1.2 m delayed   (İDO suspension practice)
  swim safety   wave >= 1.5 m dangerous | >= 0.8 m or SST < 16°C caution

The fallback stage has no live sea state. It takes the monthly sea surface
temperature climatology of the city's basin and a fully developed wind sea
(Pierson-Moskowitz, Hs = 0.21 U² / g) from the local wind speed.

Open-Meteo's marine grid only has ocean cells, so every coastal city carries
an offshore-shifted sampling point.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping
from zoneinfo import ZoneInfo

from services.islands.estimation.types import FerryStatus, MarineEstimate, SwimSafety, round_half_up, utcnow
from services.islands.geo.normalize import city_key

logger = logging.getLogger(__name__)

_LOCAL_TZ = ZoneInfo("Europe/Istanbul")
_GRAVITY = 9.81


class SeaBasin(str, Enum):
    MARMARA = "marmara"
    AEGEAN = "aegean"
    MEDITERRANEAN = "mediterranean"
    BLACK_SEA = "black_sea"


@dataclass(frozen=True)
class CoastalPoint:
    lat: float
    lon: float
    basin: SeaBasin


_MAR, _AEG, _MED, _BLK = SeaBasin.MARMARA, SeaBasin.AEGEAN, SeaBasin.MEDITERRANEAN, SeaBasin.BLACK_SEA

COASTAL_POINTS: Mapping[str, CoastalPoint] = MappingProxyType({
    # Marmara
    "istanbul": CoastalPoint(40.80, 28.70, _MAR),
    "kocaeli": CoastalPoint(40.78, 29.40, _MAR),
    "bursa": CoastalPoint(40.55, 28.70, _MAR),     # Mudanya offshore
    "yalova": CoastalPoint(40.60, 29.10, _MAR),
    "tekirdag": CoastalPoint(40.90, 27.40, _MAR),
    "balikesir": CoastalPoint(40.20, 26.80, _MAR),
    "canakkale": CoastalPoint(39.90, 26.00, _AEG),
    # Aegean
    "izmir": CoastalPoint(38.20, 26.20, _AEG),
    "aydin": CoastalPoint(37.40, 26.80, _AEG),
    "mugla": CoastalPoint(36.80, 27.50, _AEG),
    "cesme": CoastalPoint(38.30, 26.10, _AEG),
    "kusadasi": CoastalPoint(37.80, 27.10, _AEG),
    "didim": CoastalPoint(37.30, 27.20, _AEG),
    "bodrum": CoastalPoint(36.90, 27.30, _AEG),
    "datca": CoastalPoint(36.70, 27.60, _AEG),
    # Mediterranean
    "antalya": CoastalPoint(36.40, 30.70, _MED),
    "mersin": CoastalPoint(36.40, 34.50, _MED),
    "adana": CoastalPoint(36.50, 35.50, _MED),
    "hatay": CoastalPoint(35.90, 35.80, _MED),
    "alanya": CoastalPoint(36.30, 32.00, _MED),
    "side": CoastalPoint(36.50, 31.40, _MED),
    "belek": CoastalPoint(36.60, 31.00, _MED),
    "kemer": CoastalPoint(36.50, 30.50, _MED),
    "kas": CoastalPoint(36.10, 29.60, _MED),
    "kalkan": CoastalPoint(36.20, 29.40, _MED),
    "marmaris": CoastalPoint(36.70, 28.20, _MED),
    "fethiye": CoastalPoint(36.50, 29.00, _MED),
    "oludeniz": CoastalPoint(36.50, 29.10, _MED),
    "dalyan": CoastalPoint(36.70, 28.60, _MED),
    # Black Sea
    "samsun": CoastalPoint(41.70, 36.20, _BLK),
    "trabzon": CoastalPoint(41.30, 39.60, _BLK),
    "rize": CoastalPoint(41.40, 40.60, _BLK),
    "sinop": CoastalPoint(42.30, 35.00, _BLK),
    "zonguldak": CoastalPoint(41.80, 31.80, _BLK),
    "ordu": CoastalPoint(41.30, 37.50, _BLK),
    "giresun": CoastalPoint(41.20, 38.50, _BLK),
    "artvin": CoastalPoint(41.50, 41.30, _BLK),
    "bartin": CoastalPoint(41.80, 32.30, _BLK),
    "duzce": CoastalPoint(41.40, 31.10, _BLK),     # Akçakoca
})

# Monthly mean SST (°C), January first
SST_CLIMATOLOGY: Mapping[SeaBasin, tuple[float, ...]] = MappingProxyType({
    _MAR: (9, 8, 9, 11, 15, 20, 23, 24, 22, 18, 14, 11),
    _AEG: (15, 14, 15, 16, 19, 22, 24, 24, 23, 21, 18, 16),
    _MED: (17, 17, 17, 18, 21, 25, 27, 28, 27, 24, 21, 19),
    _BLK: (9, 8, 8, 10, 15, 21, 24, 25, 22, 18, 14, 11),
})

DEFAULT_SEA_TEMP_C = 18.0


def ferry_status_for(wave_height_m: float) -> FerryStatus:
    if wave_height_m >= 2.0:
        return FerryStatus.CANCELLED
    if wave_height_m >= 1.2:
        return FerryStatus.DELAYED
    return FerryStatus.NORMAL


def swim_safety_for(wave_height_m: float, sea_temp_c: float) -> SwimSafety:
    if wave_height_m >= 1.5:
        return SwimSafety.DANGEROUS
    if wave_height_m >= 0.8:
        return SwimSafety.CAUTION
    if sea_temp_c < 16:
        return SwimSafety.CAUTION
    return SwimSafety.SAFE


def generate_marine_narrative(sea_temp_c: float, wave_height_m: float, ferry_status: FerryStatus) -> str:
    if sea_temp_c >= 24:
        temp_desc = "Deniz yüzmeye çok uygun! "
    elif sea_temp_c >= 20:
        temp_desc = "Deniz sıcaklığı ideal. "
    elif sea_temp_c >= 16:
        temp_desc = "Deniz biraz serin. "
    else:
        temp_desc = "Deniz yüzme için soğuk. "

    if wave_height_m < 0.3:
        wave_desc = "Dalgalar yok denecek kadar az."
    elif wave_height_m < 0.8:
        wave_desc = "Hafif dalgalar var."
    elif wave_height_m < 1.5:
        wave_desc = "Orta şiddette dalgalar var."
    else:
        wave_desc = "Dalgalar yüksek, dikkatli olun."

    ferry_alert = ""
    if ferry_status is FerryStatus.CANCELLED:
        ferry_alert = " ⚠️ Vapur seferleri iptal edildi."
    elif ferry_status is FerryStatus.DELAYED:
        ferry_alert = " Vapur seferlerinde gecikme olabilir."

    return f"{temp_desc}Su sıcaklığı {sea_temp_c}°C. {wave_desc}{ferry_alert}"


def calculate_beach_score(marine: MarineEstimate, uv_index: float, air_temp_c: float) -> int:
    """Beach day score 0-10."""
    score = 10

    if marine.wave_height_m > 1.5:
        score -= 4
    elif marine.wave_height_m > 0.8:
        score -= 2
    elif marine.wave_height_m > 0.5:
        score -= 1

    if marine.sea_temp_c < 18:
        score -= 2
    if air_temp_c < 22:
        score -= 1
    if air_temp_c > 35:
        score -= 1

    if uv_index > 10:
        score -= 2
    elif uv_index > 8:
        score -= 1

    if marine.ferry_status is FerryStatus.CANCELLED:
        score -= 3

    return max(0, min(10, score))


def build_marine_estimate(
    city: str,
    *,
    sea_temp_c: float,
    wave_height_m: float,
    wave_period_s: float = 0,
    wave_direction_deg: float = 0,
    swell_height_m: float = 0,
    wind_wave_height_m: float = 0,
    source: str,
) -> MarineEstimate:
    """Round raw sea-state values and derive status fields and narrative."""
    sea_temp = round(sea_temp_c, 1)
    wave = round(wave_height_m, 1)
    ferry = ferry_status_for(wave_height_m)
    return MarineEstimate(
        city=city,
        sea_temp_c=sea_temp,
        wave_height_m=wave,
        wave_period_s=round_half_up(wave_period_s),
        wave_direction_deg=wave_direction_deg,
        swell_height_m=round(swell_height_m, 1),
        wind_wave_height_m=round(wind_wave_height_m, 1),
        ferry_status=ferry,
        swim_safety=swim_safety_for(wave_height_m, sea_temp_c),
        narrative=generate_marine_narrative(sea_temp, wave, ferry),
        last_updated=utcnow(),
        source=source,
    )


def wind_sea_height(wind_speed_kmh: float) -> float:
    """Fully developed significant wave height (m) for a steady wind."""
    u = max(0.0, wind_speed_kmh) / 3.6
    return 0.21 * u * u / _GRAVITY


def estimate_marine(
    city: str,
    wind_speed_kmh: float = 0,
    *,
    month: int | None = None,
    now: datetime | None = None,
) -> MarineEstimate | None:
    """Climatology-based marine record. None for a non-coastal city."""
    point = COASTAL_POINTS.get(city_key(city))
    if point is None:
        return None

    if month is None:
        month = (now or datetime.now(_LOCAL_TZ)).month
    sst = SST_CLIMATOLOGY[point.basin][month - 1]
    wave = wind_sea_height(wind_speed_kmh)

    return build_marine_estimate(
        city,
        sea_temp_c=sst,
        wave_height_m=wave,
        wind_wave_height_m=wave,
        source="climatology",
    )


def is_coastal_city(city: str) -> bool:
    return city_key(city) in COASTAL_POINTS
