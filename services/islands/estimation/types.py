"""
Record types shared by the estimation engines and the external adapters.

Every record carries a `last_updated` timestamp and a narrative built from its
own numeric fields. `to_dict()` emits the camelCase keys the widgets consume.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class CongestionLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    SEVERE = "severe"


class RouteStatus(str, Enum):
    NORMAL = "normal"
    SLOW = "slow"
    CONGESTED = "congested"


class AvalancheRisk(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    CONSIDERABLE = "considerable"
    HIGH = "high"


class SnowCondition(str, Enum):
    POWDER = "powder"
    PACKED = "packed"
    ICY = "icy"
    SLUSHY = "slushy"
    CLOSED = "closed"


class Visibility(str, Enum):
    GOOD = "good"
    MODERATE = "moderate"
    POOR = "poor"


class FerryStatus(str, Enum):
    NORMAL = "normal"
    DELAYED = "delayed"
    CANCELLED = "cancelled"


class SwimSafety(str, Enum):
    SAFE = "safe"
    CAUTION = "caution"
    DANGEROUS = "dangerous"


def round_half_up(value: float) -> int:
    """Round .5 away from zero on the positive side (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RouteDelay:
    name: str
    delay_minutes: int
    status: RouteStatus

    def to_dict(self) -> dict:
        return {"name": self.name, "delay": self.delay_minutes, "status": self.status.value}


@dataclass(frozen=True)
class TrafficEstimate:
    city: str
    congestion_level: CongestionLevel
    congestion_percent: int
    routes: tuple[RouteDelay, ...]
    average_speed_kmh: int
    narrative: str
    last_updated: datetime
    source: str = "estimate"

    def to_dict(self) -> dict:
        return {
            "city": self.city,
            "congestionLevel": self.congestion_level.value,
            "congestionPercent": self.congestion_percent,
            "mainRoutes": [r.to_dict() for r in self.routes],
            "averageSpeed": self.average_speed_kmh,
            "narrative": self.narrative,
            "lastUpdated": self.last_updated.isoformat(),
            "source": self.source,
        }


@dataclass(frozen=True)
class SkiEstimate:
    resort: str
    snow_depth_cm: int
    fresh_snow_24h_cm: int
    base_temp_c: float
    summit_temp_c: int
    lifts_open: int
    lifts_total: int
    avalanche_risk: AvalancheRisk
    snow_condition: SnowCondition
    visibility: Visibility
    narrative: str
    last_updated: datetime

    def to_dict(self) -> dict:
        return {
            "resort": self.resort,
            "snowDepth": self.snow_depth_cm,
            "freshSnow24h": self.fresh_snow_24h_cm,
            "baseTemp": self.base_temp_c,
            "summitTemp": self.summit_temp_c,
            "liftsOpen": self.lifts_open,
            "liftsTotal": self.lifts_total,
            "avalancheRisk": self.avalanche_risk.value,
            "snowCondition": self.snow_condition.value,
            "visibility": self.visibility.value,
            "narrative": self.narrative,
            "lastUpdated": self.last_updated.isoformat(),
        }


@dataclass(frozen=True)
class MarineEstimate:
    city: str
    sea_temp_c: float
    wave_height_m: float
    wave_period_s: int
    wave_direction_deg: float
    swell_height_m: float
    wind_wave_height_m: float
    ferry_status: FerryStatus
    swim_safety: SwimSafety
    narrative: str
    last_updated: datetime
    source: str = "open-meteo"

    def to_dict(self) -> dict:
        return {
            "city": self.city,
            "seaTemp": self.sea_temp_c,
            "waveHeight": self.wave_height_m,
            "wavePeriod": self.wave_period_s,
            "waveDirection": self.wave_direction_deg,
            "swellHeight": self.swell_height_m,
            "windWaveHeight": self.wind_wave_height_m,
            "ferryStatus": self.ferry_status.value,
            "swimSafety": self.swim_safety.value,
            "narrative": self.narrative,
            "lastUpdated": self.last_updated.isoformat(),
            "source": self.source,
        }


@dataclass(frozen=True)
class RegionalSummary:
    city: str
    narrative: str
    last_updated: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "city": self.city,
            "narrative": self.narrative,
            "lastUpdated": self.last_updated.isoformat(),
        }
