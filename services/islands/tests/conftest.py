"""
Shared test fixtures for the islands API test suite.

Provides:
- async FastAPI test client (no external services needed)
- an IslandPage with seeded randomness and a fixed clock
"""

import os
import random
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from httpx import ASGITransport, AsyncClient

# Ensure test env vars before any app imports
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("SENTRY_DSN", "")
os.environ.setdefault("TOMTOM_API_KEY", "")
os.environ.setdefault("SKI_PROXY_BASE_URL", "")

ISTANBUL_TZ = ZoneInfo("Europe/Istanbul")

# Wednesday in peak ski season, 08:00 local
FIXED_NOW = datetime(2025, 1, 15, 8, 0, tzinfo=ISTANBUL_TZ)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def island_page():
    """Heuristic-only page: no remote adapters, seeded noise, frozen clock."""
    from services.islands.page import IslandPage

    return IslandPage(rng=random.Random(42), clock=lambda: FIXED_NOW)


@pytest.fixture
async def app(island_page):
    """Create a test FastAPI app with a heuristic-only page."""
    from services.islands.main import app as _app

    _app.state.settings = __import__(
        "services.islands.config", fromlist=["settings"]
    ).settings
    _app.state.island_page = island_page

    return _app


@pytest.fixture
async def client(app):
    """Async HTTP client bound to the test app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
