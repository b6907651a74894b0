"""
MarineAdapter — Open-Meteo Marine API client (free, no key).

Wave variables come from `current`; sea surface temperature is only published
as an hourly series, so the value at the current Europe/Istanbul hour is used
(18°C when missing).

Request:
  GET https://marine-api.open-meteo.com/v1/marine
      ?latitude=40.8&longitude=28.7
      &current=wave_height,wave_direction,wave_period,wind_wave_height,swell_wave_height
      &hourly=sea_surface_temperature&forecast_days=1&timezone=Europe/Istanbul

A 400 means the sampling point is not over a water cell.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

import httpx

from services.islands.adapters._payload import as_dict, as_float
from services.islands.estimation.marine import COASTAL_POINTS, DEFAULT_SEA_TEMP_C, build_marine_estimate
from services.islands.estimation.types import MarineEstimate
from services.islands.geo.normalize import city_key

logger = logging.getLogger(__name__)

_LOCAL_TZ = ZoneInfo("Europe/Istanbul")
_API_TIMEOUT_S = 8.0

_CURRENT_VARS = (
    "wave_height",
    "wave_direction",
    "wave_period",
    "wind_wave_height",
    "swell_wave_height",
)


def _sea_temp_at(payload: dict[str, Any], hour: int) -> float:
    series = as_dict(payload.get("hourly")).get("sea_surface_temperature")
    if isinstance(series, list) and 0 <= hour < len(series):
        return as_float(series[hour], DEFAULT_SEA_TEMP_C)
    return DEFAULT_SEA_TEMP_C


def parse_marine(city: str, payload: dict[str, Any], hour: int) -> MarineEstimate:
    """Malformed or missing wave fields default to 0, SST to 18°C."""
    current = as_dict(payload.get("current"))
    return build_marine_estimate(
        city,
        sea_temp_c=_sea_temp_at(payload, hour),
        wave_height_m=max(0.0, as_float(current.get("wave_height"))),
        wave_period_s=max(0.0, as_float(current.get("wave_period"))),
        wave_direction_deg=as_float(current.get("wave_direction")),
        swell_height_m=max(0.0, as_float(current.get("swell_wave_height"))),
        wind_wave_height_m=max(0.0, as_float(current.get("wind_wave_height"))),
        source="open-meteo",
    )


class MarineAdapter:
    """
    Open-Meteo Marine client.

    Usage:
        adapter = MarineAdapter()
        marine = await adapter.fetch("Antalya")
    """

    def __init__(
        self,
        base_url: str = "https://marine-api.open-meteo.com/v1/marine",
        timeout_s: float = _API_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._timeout_s = timeout_s
        self._transport = transport

    async def fetch(self, city: str, now: datetime | None = None) -> MarineEstimate | None:
        """
        Fetch current sea state for a coastal city.

        Returns None for a non-coastal city or any HTTP/payload failure.
        """
        point = COASTAL_POINTS.get(city_key(city))
        if point is None:
            logger.info("Marine API: %s is not a coastal city", city)
            return None

        hour = (now or datetime.now(_LOCAL_TZ)).hour

        try:
            async with httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport) as client:
                resp = await client.get(
                    self._base_url,
                    params={
                        "latitude": point.lat,
                        "longitude": point.lon,
                        "current": ",".join(_CURRENT_VARS),
                        "hourly": "sea_surface_temperature",
                        "forecast_days": 1,
                        "timezone": "Europe/Istanbul",
                    },
                )
                resp.raise_for_status()
                raw = resp.json()
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 400:
                logger.warning("Marine API: sampling point for %s is not over water", city)
            else:
                logger.warning(
                    "Marine API returned %d for city=%r: %s",
                    exc.response.status_code,
                    city,
                    exc.response.text[:200],
                )
            return None
        except Exception:
            logger.exception("Marine API fetch failed for city=%r", city)
            return None

        if not isinstance(raw, dict):
            logger.warning("Marine API returned a non-object payload for city=%r", city)
            return None

        try:
            marine = parse_marine(city, raw, hour)
        except Exception:
            logger.exception("Marine API: could not parse payload for city=%r", city)
            return None

        logger.info("Marine API: %s - SST %.1f°C, waves %.1fm", city, marine.sea_temp_c, marine.wave_height_m)
        return marine
