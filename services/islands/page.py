"""
IslandPage — state behind the island demo page.

Refresh cycle (one per city selection):
  1. bump the monotonic cycle id and mark the page loading
  2. plan modules for the profile (direct registration, hub, category)
  3. fan out the active two-stage pipelines with asyncio.gather, then join
  4. commit only if the cycle is still the newest one

A slow cycle for a previously selected city finishes after the newer one has
committed; its results are discarded instead of overwriting the page.

Exceptions escaping a cycle become the single page-level error message.
Adapter failures never get that far: they degrade to None inside the
pipeline.

Single writer on a single event loop, so no locking.
"""

from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime
from typing import Any, Awaitable, Callable
from zoneinfo import ZoneInfo

from services.islands.adapters.marine import MarineAdapter
from services.islands.adapters.ski_forecast import SkiForecastAdapter
from services.islands.adapters.tomtom import TomTomTrafficAdapter, has_traffic_monitoring
from services.islands.estimation.marine import estimate_marine
from services.islands.estimation.ski import calculate_ski_conditions
from services.islands.estimation.traffic import estimate_traffic
from services.islands.estimation.types import RegionalSummary
from services.islands.geo.hubs import ISLAND_HUBS, Capability, Hub
from services.islands.pipeline import StageOutcome, run_two_stage
from services.islands.profiles import (
    DEMO_CITIES,
    CityProfile,
    ModuleRoute,
    WeatherInputs,
    get_profile,
    plan_modules,
)
from services.islands.widgets import (
    WidgetBoundary,
    render_marine,
    render_regional,
    render_ski,
    render_traffic,
    unavailable_view,
)

logger = logging.getLogger(__name__)

_LOCAL_TZ = ZoneInfo("Europe/Istanbul")

WIDGET_ORDER = ("traffic", "marine", "ski", "regional")


def _local_now() -> datetime:
    return datetime.now(_LOCAL_TZ)


def regional_narrative(city_name: str) -> str:
    return (
        f"{city_name} bölgesinde hava durumu normal seyrediyor. "
        "Detaylı tahminler için şehir sayfasını ziyaret edin."
    )


class IslandPage:
    """
    Usage:
        page = IslandPage(traffic_adapter=..., ski_adapter=..., marine_adapter=...)
        committed = await page.select("erzurum", WeatherInputs(...))
        state = page.snapshot()
    """

    def __init__(
        self,
        traffic_adapter: TomTomTrafficAdapter | None = None,
        ski_adapter: SkiForecastAdapter | None = None,
        marine_adapter: MarineAdapter | None = None,
        *,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _local_now,
        hubs: tuple[Hub, ...] = ISLAND_HUBS,
    ) -> None:
        self._traffic = traffic_adapter
        self._ski = ski_adapter
        self._marine = marine_adapter
        self._rng = rng or random.Random()
        self._clock = clock
        self._hubs = hubs

        self._cycle = 0
        self._committed_cycle = 0
        self.loading = False
        self.profile: CityProfile = DEMO_CITIES[0]
        self.weather = WeatherInputs()
        self.error: str | None = None
        self._plan: dict[Capability, ModuleRoute] = {}
        self._outcomes: dict[Capability, StageOutcome] = {}
        self._boundaries: dict[str, WidgetBoundary] = {}

    @property
    def cycle(self) -> int:
        return self._cycle

    @property
    def committed_cycle(self) -> int:
        return self._committed_cycle

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def _traffic_pipeline(self, route: ModuleRoute, weather: WeatherInputs, now: datetime) -> Awaitable[StageOutcome]:
        remote = None
        if self._traffic is not None and self._traffic.enabled and has_traffic_monitoring(route.source_key):
            remote = lambda: self._traffic.fetch(route.source_name)  # noqa: E731

        def heuristic():
            return estimate_traffic(route.source_name, is_raining=weather.is_raining, rng=self._rng, now=now)

        return run_two_stage(f"traffic:{route.source_key}", remote, heuristic)

    def _marine_pipeline(self, route: ModuleRoute, weather: WeatherInputs, now: datetime) -> Awaitable[StageOutcome]:
        remote = None
        if self._marine is not None:
            remote = lambda: self._marine.fetch(route.source_name, now=now)  # noqa: E731

        def heuristic():
            return estimate_marine(route.source_name, weather.wind_speed_kmh, now=now)

        return run_two_stage(f"marine:{route.source_key}", remote, heuristic)

    def _ski_pipeline(self, route: ModuleRoute, weather: WeatherInputs, now: datetime) -> Awaitable[StageOutcome]:
        remote = None
        if self._ski is not None and self._ski.enabled:
            remote = lambda: self._ski.fetch(route.source_key, month=now.month)  # noqa: E731

        def heuristic():
            return calculate_ski_conditions(
                route.source_key,
                weather.temperature_c,
                weather.precipitation_mm,
                weather.wind_speed_kmh,
                weather.cloud_cover_pct,
                weather.snowfall_mm,
                now=now,
            )

        return run_two_stage(f"ski:{route.source_key}", remote, heuristic)

    async def _refresh(
        self,
        plan: dict[Capability, ModuleRoute],
        weather: WeatherInputs,
    ) -> dict[Capability, StageOutcome]:
        now = self._clock()
        builders = {
            Capability.TRAFFIC: self._traffic_pipeline,
            Capability.MARINE: self._marine_pipeline,
            Capability.SKI: self._ski_pipeline,
        }
        pending = {
            cap: builders[cap](route, weather, now)
            for cap, route in plan.items()
            if route.active
        }
        results = await asyncio.gather(*pending.values())
        return dict(zip(pending, results))

    async def select(self, city_key: str, weather: WeatherInputs | None = None) -> bool:
        """Run a refresh cycle for `city_key`.

        Returns True when this cycle's results were committed, False when a
        newer selection superseded it. Raises UnknownCityError for a key with
        no demo profile.
        """
        profile = get_profile(city_key)
        weather = weather or WeatherInputs()

        self._cycle += 1
        cycle = self._cycle
        self.loading = True
        logger.info("Refresh cycle %d for %s started", cycle, profile.key)

        plan = plan_modules(profile, self._hubs)
        error: str | None = None
        try:
            outcomes = await self._refresh(plan, weather)
        except Exception as exc:
            logger.exception("Refresh cycle %d for %s failed", cycle, profile.key)
            outcomes = {}
            error = str(exc) or "Unknown error"

        if cycle != self._cycle:
            logger.info(
                "Discarding refresh cycle %d for %s; cycle %d is current",
                cycle,
                profile.key,
                self._cycle,
            )
            return False

        self.profile = profile
        self.weather = weather
        self.error = error
        self._plan = plan
        self._outcomes = outcomes
        self._boundaries = {name: WidgetBoundary(name) for name in WIDGET_ORDER}
        self._committed_cycle = cycle
        self.loading = False
        logger.info(
            "Refresh cycle %d for %s committed: %s",
            cycle,
            profile.key,
            {cap.value: o.stage.value for cap, o in outcomes.items()},
        )
        return True

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _active(self, capability: Capability) -> bool:
        route = self._plan.get(capability)
        return bool(route and route.active)

    def _show_regional(self) -> bool:
        return bool(self._plan) and not any(r.active for r in self._plan.values())

    def _render_widget(self, name: str) -> dict | None:
        if name == "regional":
            if not self._show_regional():
                return None
            summary = RegionalSummary(city=self.profile.name, narrative=regional_narrative(self.profile.name))
            return self._boundaries[name].render(lambda: render_regional(summary))

        capability = Capability(name)
        if not self._active(capability):
            return None

        outcome = self._outcomes.get(capability)
        if outcome is None or outcome.record is None:
            return unavailable_view(name)

        record, stage = outcome.record, outcome.stage
        if capability is Capability.TRAFFIC:
            renderer = lambda: render_traffic(record, stage)  # noqa: E731
        elif capability is Capability.MARINE:
            renderer = lambda: render_marine(  # noqa: E731
                record,
                stage,
                wind_speed_kmh=self.weather.wind_speed_kmh,
                uv_index=self.weather.uv_index,
                air_temp_c=self.weather.temperature_c,
            )
        else:
            renderer = lambda: render_ski(record, stage)  # noqa: E731
        return self._boundaries[name].render(renderer)

    def render_widgets(self) -> list[dict]:
        if self.loading or not self._committed_cycle:
            return []
        views = (self._render_widget(name) for name in WIDGET_ORDER)
        return [v for v in views if v is not None]

    def module_badges(self) -> list[dict[str, Any]]:
        badges = []
        for cap in (Capability.TRAFFIC, Capability.MARINE, Capability.SKI):
            route = self._plan.get(cap)
            outcome = self._outcomes.get(cap)
            badges.append({
                "name": cap.value,
                "active": bool(route and route.active),
                "hasData": bool(outcome and outcome.ok),
                "stage": outcome.stage.value if outcome else None,
                "viaHub": route.via_hub if route else None,
            })
        badges.append({
            "name": "regional",
            "active": self._show_regional(),
            "hasData": True,
            "stage": None,
            "viaHub": None,
        })
        return badges

    def retry(self, widget_name: str) -> dict | None:
        """Reset one widget's boundary and render it again."""
        boundary = self._boundaries.get(widget_name)
        if boundary is None:
            raise KeyError(widget_name)
        boundary.retry()
        return self._render_widget(widget_name)

    def snapshot(self) -> dict[str, Any]:
        return {
            "cycle": self._committed_cycle,
            "city": self.profile.to_dict(),
            "loading": self.loading,
            "error": self.error,
            "modules": self.module_badges() if self._committed_cycle else [],
            "widgets": self.render_widgets(),
        }
