"""
Islands router — city profiles, hub lookup, refresh cycles, widget retry.

GET  /islands/profiles
GET  /islands/hubs/nearest?lat=&lon=&capability=
POST /islands/select                     {"cityKey": "erzurum", "weather": {...}}
GET  /islands/state
POST /islands/widgets/{name}/retry

All responses use the {success, data, requestId} envelope. The page state is
the IslandPage held on app.state.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict, Field

from services.islands.geo.hubs import Capability
from services.islands.geo.resolver import find_nearest_hub
from services.islands.profiles import DEMO_CITIES, UnknownCityError, WeatherInputs

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/islands", tags=["islands"])


class WeatherBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    temperature_c: float = Field(default=-5, alias="temperature", ge=-60, le=60)
    precipitation_mm: float = Field(default=10, alias="precipitation", ge=0, le=500)
    wind_speed_kmh: float = Field(default=20, alias="windSpeed", ge=0, le=300)
    cloud_cover_pct: float = Field(default=40, alias="cloudCover", ge=0, le=100)
    snowfall_mm: float = Field(default=0, alias="snowfall", ge=0, le=5000)
    uv_index: float = Field(default=5, alias="uvIndex", ge=0, le=20)

    def to_inputs(self) -> WeatherInputs:
        return WeatherInputs(**self.model_dump())


class SelectBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    city_key: str = Field(..., alias="cityKey", min_length=1, max_length=100)
    weather: WeatherBody | None = None


def _envelope(request: Request, data) -> dict:
    return {"success": True, "data": data, "requestId": request.state.request_id}


@router.get("/profiles")
async def list_profiles(request: Request) -> dict:
    return _envelope(request, {"profiles": [p.to_dict() for p in DEMO_CITIES]})


@router.get("/hubs/nearest")
async def nearest_hub(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    capability: Capability = Query(..., description="marine | traffic | ski"),
) -> dict:
    match = find_nearest_hub(lat, lon, capability)
    return _envelope(request, {"match": match.to_dict() if match else None})


@router.post("/select")
async def select_city(request: Request, body: SelectBody) -> dict:
    page = request.app.state.island_page
    weather = body.weather.to_inputs() if body.weather else None

    try:
        committed = await page.select(body.city_key, weather)
    except UnknownCityError:
        raise HTTPException(status_code=404, detail=f"Unknown city profile: {body.city_key}")

    state = page.snapshot()
    state["committed"] = committed
    return _envelope(request, state)


@router.get("/state")
async def get_state(request: Request) -> dict:
    return _envelope(request, request.app.state.island_page.snapshot())


@router.post("/widgets/{name}/retry")
async def retry_widget(request: Request, name: str) -> dict:
    page = request.app.state.island_page
    try:
        view = page.retry(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown widget: {name}")
    return _envelope(request, {"widget": view})
