"""
SkiForecastAdapter — Weather Unlocked resort forecast through the backend proxy.

The proxy forwards `GET /wp-json/sinan/v1/ski?id=<resort id>` to the provider
and returns its JSON untouched:

  {
    "forecast": [
      {
        "base":  {"temp_c": -4.0, "fresh_snow_cm": 6.0, "windspd_kmh": 18.0, "wx_code": 71},
        "upper": {"temp_c": -9.0, "fresh_snow_cm": 9.0, ...},
        ...
      },
      ...
    ]
  }

Only today's forecast (first element) is consumed. The provider has no lift or
depth data, so the forecast is mapped onto the ski engine's inputs and the
engine produces the record:

  temperature    base.temp_c
  precipitation  base.fresh_snow_cm (1 cm snow = 1 mm water)
  wind           base.windspd_kmh
  cloud cover    wx_code >= 50 -> 90% | >= 20 -> 60% | otherwise 10%
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Mapping

import httpx

from services.islands.adapters._payload import as_dict, as_float
from services.islands.estimation.ski import SKI_RESORTS, calculate_ski_conditions
from services.islands.estimation.types import SkiEstimate
from services.islands.geo.normalize import city_key

logger = logging.getLogger(__name__)

_PROXY_PATH = "/wp-json/sinan/v1/ski"
_API_TIMEOUT_S = 8.0

# Provider resort ids, keyed by resort slug
RESORT_IDS: Mapping[str, str] = MappingProxyType({
    "uludag": "54887323",
    "erciyes": "54887317",
    "palandoken": "54887319",
    "kartalkaya": "54887315",
    "sarikamis": "54888529",
    "davraz": "54888519",
    "saklikent": "54888733",
    "ilgaz": "54888525",
})


def resort_id_for(resort_key: str) -> str | None:
    """Map a city key (erzurum) or resort slug (palandoken) to the provider id."""
    key = city_key(resort_key)
    resort = SKI_RESORTS.get(key)
    slug = city_key(resort.name) if resort else key
    return RESORT_IDS.get(slug)


def cloud_cover_for_code(wx_code: int) -> int:
    """Weather Unlocked codes: 0-3 clear, 20+ cloud/fog, 50+ precipitation."""
    if wx_code >= 50:
        return 90
    if wx_code >= 20:
        return 60
    return 10


def forecast_to_inputs(forecast: dict[str, Any]) -> dict[str, float]:
    """Engine inputs from one forecast day; malformed or missing fields default to 0."""
    base = as_dict(forecast.get("base"))
    return {
        "current_temp": as_float(base.get("temp_c")),
        "precipitation": max(0.0, as_float(base.get("fresh_snow_cm"))),
        "wind_speed": max(0.0, as_float(base.get("windspd_kmh"))),
        "cloud_cover": cloud_cover_for_code(int(as_float(base.get("wx_code")))),
    }


class SkiForecastAdapter:
    """
    Ski forecast client via the backend proxy.

    Usage:
        adapter = SkiForecastAdapter(proxy_base_url="http://localhost:8080")
        ski = await adapter.fetch("erzurum")
    """

    def __init__(
        self,
        proxy_base_url: str,
        timeout_s: float = _API_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = proxy_base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self._base_url)

    async def fetch(self, resort_key: str, month: int | None = None) -> SkiEstimate | None:
        """
        Fetch today's forecast and run it through the ski engine.

        Returns None for an unmapped resort, an empty forecast, or any HTTP
        or payload failure. Errors are logged, never raised.
        """
        resort_id = resort_id_for(resort_key)
        if resort_id is None or city_key(resort_key) not in SKI_RESORTS:
            logger.debug("Ski forecast: no provider id for %r", resort_key)
            return None

        if not self.enabled:
            logger.warning("SKI_PROXY_BASE_URL not set; skipping ski forecast for %r", resort_key)
            return None

        try:
            async with httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport) as client:
                resp = await client.get(f"{self._base_url}{_PROXY_PATH}", params={"id": resort_id})
                resp.raise_for_status()
                raw = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Ski proxy returned %d for resort=%r: %s",
                exc.response.status_code,
                resort_key,
                exc.response.text[:200],
            )
            return None
        except Exception:
            logger.exception("Ski forecast fetch failed for resort=%r", resort_key)
            return None

        forecasts = raw.get("forecast") if isinstance(raw, dict) else None
        if not isinstance(forecasts, list) or not forecasts or not isinstance(forecasts[0], dict):
            logger.warning("Ski proxy returned no forecast for resort=%r", resort_key)
            return None

        return calculate_ski_conditions(resort_key, month=month, **forecast_to_inputs(forecasts[0]))
