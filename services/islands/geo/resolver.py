"""
Hub/spoke resolution.

A spoke location borrows a capability from the nearest hub that both declares
the capability and has the spoke inside its service radius (boundary
inclusive). Distances are great-circle kilometres.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable

from services.islands.geo.hubs import ISLAND_HUBS, Capability, Hub

logger = logging.getLogger(__name__)

# Earth radius in kilometres
_EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class HubMatch:
    hub: Hub
    distance_km: float

    def to_dict(self) -> dict:
        return {"hub": self.hub.to_dict(), "distanceKm": round(self.distance_km, 2)}


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute haversine distance between two points in kilometres.

    Args:
        lat1, lon1: First point (decimal degrees)
        lat2, lon2: Second point (decimal degrees)
    """
    lat1_r = math.radians(lat1)
    lat2_r = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return _EARTH_RADIUS_KM * c


def find_nearest_hub(
    lat: float,
    lon: float,
    capability: Capability,
    hubs: Iterable[Hub] = ISLAND_HUBS,
) -> HubMatch | None:
    """Return the closest hub serving `capability` whose radius covers the point.

    Returns None when no hub qualifies (including an empty hub set).
    """
    best: HubMatch | None = None

    for hub in hubs:
        if not hub.supports(capability):
            continue

        dist = haversine_distance(lat, lon, hub.coord.lat, hub.coord.lon)
        if dist <= hub.radius_km and (best is None or dist < best.distance_km):
            best = HubMatch(hub=hub, distance_km=dist)

    if best is None:
        logger.debug("No %s hub covers (%.4f, %.4f)", capability.value, lat, lon)
    return best
