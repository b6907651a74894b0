"""
Widget views and per-widget failure boundaries.

A view is the JSON-ready dict the demo page renders into a fixed-height slot.
Render functions refuse records without a narrative or timestamp, so a broken
record fails at render time and lands in its boundary.

Boundaries isolate failures: a widget that raised while rendering shows the
static fallback until its own retry() is called. Sibling widgets and the page
shell are unaffected.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from services.islands.estimation.marine import calculate_beach_score
from services.islands.estimation.types import MarineEstimate, RegionalSummary, SkiEstimate, TrafficEstimate
from services.islands.pipeline import Stage

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Veriler şu an yüklenemiyor."
RETRY_LABEL = "Tekrar Dene"
UNAVAILABLE_MESSAGE = "Veri şu an alınamıyor."

# Fixed slot heights (px) so a fallback never shifts the layout
SLOT_HEIGHTS: dict[str, int] = {
    "traffic": 250,
    "marine": 220,
    "ski": 240,
    "regional": 140,
}


class WidgetRenderError(ValueError):
    """A record is missing the fields every widget needs."""


def _require_narrative(record: Any) -> None:
    if not getattr(record, "narrative", ""):
        raise WidgetRenderError(f"{type(record).__name__} has no narrative")
    if getattr(record, "last_updated", None) is None:
        raise WidgetRenderError(f"{type(record).__name__} has no lastUpdated")


def _view(name: str, data: dict, record: Any, stage: Stage | None) -> dict:
    return {
        "widget": name,
        "status": "ok",
        "slotHeight": SLOT_HEIGHTS[name],
        "source": stage.value if stage else None,
        "data": data,
        "narrative": record.narrative,
        "lastUpdated": record.last_updated.isoformat(),
    }


def render_traffic(record: TrafficEstimate, stage: Stage | None = None) -> dict:
    _require_narrative(record)
    return _view(
        "traffic",
        {
            "congestionLevel": record.congestion_level.value,
            "congestionPercent": record.congestion_percent,
            "averageSpeed": record.average_speed_kmh,
            "mainRoutes": [{"name": r.name, "delay": r.delay_minutes} for r in record.routes],
        },
        record,
        stage,
    )


def render_marine(
    record: MarineEstimate,
    stage: Stage | None = None,
    *,
    wind_speed_kmh: float = 0,
    uv_index: float = 0,
    air_temp_c: float = 0,
) -> dict:
    _require_narrative(record)
    return _view(
        "marine",
        {
            "seaTemp": record.sea_temp_c,
            "waveHeight": record.wave_height_m,
            "windSpeed": wind_speed_kmh,
            "ferryStatus": record.ferry_status.value,
            "swimSafety": record.swim_safety.value,
            "beachScore": calculate_beach_score(record, uv_index, air_temp_c),
        },
        record,
        stage,
    )


def render_ski(record: SkiEstimate, stage: Stage | None = None) -> dict:
    _require_narrative(record)
    return _view(
        "ski",
        {
            "resort": record.resort,
            "snowDepth": record.snow_depth_cm,
            "liftsOpen": record.lifts_open,
            "liftsTotal": record.lifts_total,
            "avalancheRisk": record.avalanche_risk.value,
        },
        record,
        stage,
    )


def render_regional(record: RegionalSummary) -> dict:
    _require_narrative(record)
    return _view("regional", {"cityDisplay": record.city}, record, None)


def unavailable_view(name: str) -> dict:
    """Active module whose pipeline produced no record."""
    return {
        "widget": name,
        "status": "unavailable",
        "slotHeight": SLOT_HEIGHTS[name],
        "message": UNAVAILABLE_MESSAGE,
    }


class WidgetBoundary:
    """
    Failure boundary around one widget.

    Usage:
        boundary = WidgetBoundary("traffic")
        view = boundary.render(lambda: render_traffic(record))
        ...
        boundary.retry()   # user pressed "Tekrar Dene"
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.failed = False
        self.last_error: str | None = None

    def fallback_view(self) -> dict:
        return {
            "widget": self.name,
            "status": "error",
            "slotHeight": SLOT_HEIGHTS.get(self.name, 200),
            "message": FALLBACK_MESSAGE,
            "retryLabel": RETRY_LABEL,
        }

    def render(self, renderer: Callable[[], dict]) -> dict:
        if self.failed:
            return self.fallback_view()
        try:
            return renderer()
        except Exception as exc:
            logger.exception("[%s] Widget render failed", self.name)
            self.failed = True
            self.last_error = str(exc)
            return self.fallback_view()

    def retry(self) -> None:
        """Clear this boundary's failure so the next render runs the widget again."""
        self.failed = False
        self.last_error = None
