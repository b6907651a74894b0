"""
Estimation engines.

Pure functions mapping time, weather and location to narrative-bearing
records. Traffic takes an injectable random source; ski and marine are
deterministic.
"""

from services.islands.estimation.marine import estimate_marine, is_coastal_city
from services.islands.estimation.ski import SKI_RESORTS, calculate_ski_conditions, has_ski_resort
from services.islands.estimation.traffic import estimate_traffic, is_metro_city

__all__ = [
    "SKI_RESORTS",
    "calculate_ski_conditions",
    "estimate_marine",
    "estimate_traffic",
    "has_ski_resort",
    "is_coastal_city",
    "is_metro_city",
]
