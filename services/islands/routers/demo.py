"""
Demo page — server-rendered island widgets.

GET /?city=erzurum runs a refresh cycle for the city (default: the first
profile on first visit) and renders every widget slot with Jinja2.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from services.islands.profiles import DEMO_CITIES, UnknownCityError

router = APIRouter(tags=["demo"])

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def demo_page(request: Request, city: str | None = Query(None, max_length=100)) -> HTMLResponse:
    page = request.app.state.island_page

    if city is not None or not page.committed_cycle:
        try:
            await page.select(city or DEMO_CITIES[0].key)
        except UnknownCityError:
            raise HTTPException(status_code=404, detail=f"Unknown city profile: {city}")

    return templates.TemplateResponse(
        request,
        "island_demo.html",
        {"state": page.snapshot(), "profiles": [p.to_dict() for p in DEMO_CITIES]},
    )
