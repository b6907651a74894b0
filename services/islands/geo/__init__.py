"""
Geo package.

City key normalisation, the static hub registry, and nearest-hub lookup for
spoke locations.
"""

from services.islands.geo.hubs import ISLAND_HUBS, Capability, Coordinate, Hub, HubRegistry, registry
from services.islands.geo.normalize import city_key
from services.islands.geo.resolver import HubMatch, find_nearest_hub, haversine_distance

__all__ = [
    "ISLAND_HUBS",
    "Capability",
    "Coordinate",
    "Hub",
    "HubMatch",
    "HubRegistry",
    "city_key",
    "find_nearest_hub",
    "haversine_distance",
    "registry",
]
