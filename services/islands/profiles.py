"""
Demo city profiles and per-profile module planning.

A module (traffic, marine, ski) is active for a profile when:
  1. the city itself is registered for it (monitoring points, coastal point, resort), or
  2. a hub with that capability covers the city's coordinate, or
  3. the profile's categories ask for it (metro, coastal, mountain).

The plan also records which key feeds the module: the city's own key when it
is registered, otherwise the covering hub's id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from services.islands.adapters.tomtom import has_traffic_monitoring
from services.islands.estimation.marine import is_coastal_city
from services.islands.estimation.ski import has_ski_resort
from services.islands.estimation.traffic import is_metro_city
from services.islands.geo.hubs import ISLAND_HUBS, Capability, Coordinate, Hub
from services.islands.geo.resolver import find_nearest_hub


@dataclass(frozen=True)
class CityProfile:
    key: str
    name: str
    display_name: str
    categories: tuple[str, ...]
    coord: Coordinate

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "name": self.name,
            "displayName": self.display_name,
            "categories": list(self.categories),
            "coord": {"lat": self.coord.lat, "lon": self.coord.lon},
        }


DEMO_CITIES: tuple[CityProfile, ...] = (
    CityProfile("istanbul", "İstanbul", "Kadıköy", ("metro", "coastal"), Coordinate(41.0082, 28.9784)),
    CityProfile("antalya", "Antalya", "Alanya", ("coastal", "tourism"), Coordinate(36.8969, 30.7133)),
    CityProfile("erzurum", "Erzurum", "Palandöken", ("mountain",), Coordinate(39.9043, 41.2679)),
    CityProfile("siirt", "Siirt", "Merkez", ("inland",), Coordinate(37.9333, 41.9500)),
)

_PROFILES_BY_KEY = {p.key: p for p in DEMO_CITIES}


class UnknownCityError(KeyError):
    """Raised when a city key has no demo profile."""


def get_profile(key: str) -> CityProfile:
    try:
        return _PROFILES_BY_KEY[key]
    except KeyError:
        raise UnknownCityError(key) from None


@dataclass(frozen=True)
class WeatherInputs:
    """Base-station weather fed to the heuristic stages. Defaults are the demo values."""

    temperature_c: float = -5
    precipitation_mm: float = 10
    wind_speed_kmh: float = 20
    cloud_cover_pct: float = 40
    snowfall_mm: float = 0
    uv_index: float = 5

    @property
    def is_raining(self) -> bool:
        return self.precipitation_mm > 0 and self.temperature_c > 0


@dataclass(frozen=True)
class ModuleRoute:
    """Where one module's data comes from for a profile."""

    capability: Capability
    active: bool
    source_key: str | None = None
    source_name: str | None = None
    via_hub: str | None = None


_CATEGORY_FOR = {
    Capability.TRAFFIC: "metro",
    Capability.MARINE: "coastal",
    Capability.SKI: "mountain",
}


def _registered(capability: Capability, key: str) -> bool:
    if capability is Capability.TRAFFIC:
        return has_traffic_monitoring(key) or is_metro_city(key)
    if capability is Capability.MARINE:
        return is_coastal_city(key)
    return has_ski_resort(key)


def route_module(profile: CityProfile, capability: Capability, hubs: Iterable[Hub] = ISLAND_HUBS) -> ModuleRoute:
    if _registered(capability, profile.key):
        return ModuleRoute(capability, True, profile.key, profile.name)

    match = find_nearest_hub(profile.coord.lat, profile.coord.lon, capability, hubs)
    if match is not None:
        return ModuleRoute(capability, True, match.hub.id, match.hub.name, via_hub=match.hub.id)

    if _CATEGORY_FOR[capability] in profile.categories:
        return ModuleRoute(capability, True, profile.key, profile.name)

    return ModuleRoute(capability, False)


def plan_modules(profile: CityProfile, hubs: Iterable[Hub] = ISLAND_HUBS) -> dict[Capability, ModuleRoute]:
    hubs = tuple(hubs)
    return {cap: route_module(profile, cap, hubs) for cap in (Capability.TRAFFIC, Capability.MARINE, Capability.SKI)}
