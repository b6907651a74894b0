"""
External data adapters.

Each adapter fetches one provider with httpx and normalises the response into
the record shapes the estimation engines produce. Failures are logged and
surface as None.
"""

from services.islands.adapters.marine import MarineAdapter
from services.islands.adapters.ski_forecast import SkiForecastAdapter
from services.islands.adapters.tomtom import TomTomTrafficAdapter, has_traffic_monitoring

__all__ = ["MarineAdapter", "SkiForecastAdapter", "TomTomTrafficAdapter", "has_traffic_monitoring"]
