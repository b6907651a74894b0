"""
Regional hub registry.

A hub is a major city that provides island data (marine, traffic, ski) for
smaller surrounding towns (spokes) inside its service radius. The registry is
built once at import time and never mutated.

Ski hubs are proxies for the nearby resort:
  bursa   -> Uludağ
  kayseri -> Erciyes
  erzurum -> Palandöken
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator


class Capability(str, Enum):
    MARINE = "marine"
    TRAFFIC = "traffic"
    SKI = "ski"


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lon: float


@dataclass(frozen=True)
class Hub:
    """A city-level node serving one or more capabilities within radius_km."""

    id: str
    name: str
    coord: Coordinate
    capabilities: frozenset[Capability]
    radius_km: float

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "coord": {"lat": self.coord.lat, "lon": self.coord.lon},
            "capabilities": sorted(c.value for c in self.capabilities),
            "radiusKm": self.radius_km,
        }


def _hub(id: str, name: str, lat: float, lon: float, caps: tuple[Capability, ...], radius_km: float) -> Hub:
    return Hub(
        id=id,
        name=name,
        coord=Coordinate(lat=lat, lon=lon),
        capabilities=frozenset(caps),
        radius_km=radius_km,
    )


_M, _T, _S = Capability.MARINE, Capability.TRAFFIC, Capability.SKI

ISLAND_HUBS: tuple[Hub, ...] = (
    # Maritime hubs
    _hub("istanbul", "İstanbul", 41.0082, 28.9784, (_M, _T), 50),
    _hub("antalya",  "Antalya",  36.8969, 30.7133, (_M, _T), 80),   # Belek, Kemer, Side
    _hub("izmir",    "İzmir",    38.4237, 27.1428, (_M, _T), 60),   # Çeşme, Urla
    _hub("mersin",   "Mersin",   36.8121, 34.6415, (_M,),    70),
    _hub("trabzon",  "Trabzon",  41.0027, 39.7168, (_M,),    60),
    _hub("samsun",   "Samsun",   41.2867, 36.3300, (_M,),    60),
    # Ski hubs
    _hub("bursa",    "Bursa",    40.1885, 29.0610, (_S, _T), 40),
    _hub("kayseri",  "Kayseri",  38.7312, 35.4787, (_S,),    30),
    _hub("erzurum",  "Erzurum",  39.9055, 41.2658, (_S,),    20),
)


class HubRegistry:
    """Read-only view over a fixed set of hubs."""

    def __init__(self, hubs: tuple[Hub, ...] = ISLAND_HUBS) -> None:
        self._hubs = tuple(hubs)
        self._by_id = {h.id: h for h in self._hubs}

    def __iter__(self) -> Iterator[Hub]:
        return iter(self._hubs)

    def __len__(self) -> int:
        return len(self._hubs)

    def get(self, hub_id: str) -> Hub | None:
        return self._by_id.get(hub_id)

    def with_capability(self, capability: Capability) -> tuple[Hub, ...]:
        return tuple(h for h in self._hubs if h.supports(capability))


registry = HubRegistry()
