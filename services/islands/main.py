"""
Islands FastAPI service — traffic, marine, ski and regional widgets for Turkish cities.

Entrypoint: uvicorn services.islands.main:app --host 0.0.0.0 --port 8000
"""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from services.islands.adapters.marine import MarineAdapter
from services.islands.adapters.ski_forecast import SkiForecastAdapter
from services.islands.adapters.tomtom import TomTomTrafficAdapter
from services.islands.config import Settings, settings
from services.islands.middleware.cors import setup_cors
from services.islands.middleware.sentry import setup_sentry
from services.islands.page import IslandPage
from services.islands.routers import demo, health, islands

logger = logging.getLogger(__name__)


def build_island_page(cfg: Settings) -> IslandPage:
    """Wire the three remote adapters from settings into a fresh page."""
    traffic = TomTomTrafficAdapter(
        api_key=cfg.tomtom_api_key,
        base_url=cfg.tomtom_base_url,
        timeout_s=cfg.http_timeout_s,
        max_routes=cfg.traffic_max_routes,
    )
    ski = SkiForecastAdapter(
        proxy_base_url=cfg.ski_proxy_base_url,
        timeout_s=cfg.http_timeout_s,
    )
    marine = MarineAdapter(
        base_url=cfg.marine_api_base_url,
        timeout_s=cfg.http_timeout_s,
    )
    return IslandPage(traffic_adapter=traffic, ski_adapter=ski, marine_adapter=marine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    setup_sentry()

    app.state.settings = settings
    app.state.island_page = build_island_page(settings)

    if not settings.tomtom_api_key:
        logger.warning("TOMTOM_API_KEY not set; traffic widget uses the heuristic engine only")
    if not settings.ski_proxy_base_url:
        logger.info("SKI_PROXY_BASE_URL not set; ski widget uses the heuristic engine only")

    yield


app = FastAPI(
    title="Islands API",
    version=settings.app_version,
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url=None,
    lifespan=lifespan,
)

# -- Middleware (order matters: last added = outermost in Starlette) --

# Routers first (innermost)
app.include_router(health.router)
app.include_router(islands.router)
app.include_router(demo.router)

# CORS (needs to be outermost to handle preflight)
setup_cors(app)


# Request ID injection
@app.middleware("http")
async def request_envelope_middleware(request: Request, call_next) -> Response:
    request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# -- Exception Handlers --

def _error(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {"code": code, "message": message},
            "requestId": getattr(request.state, "request_id", str(uuid.uuid4())),
        },
    )


@app.exception_handler(404)
async def not_found_handler(request: Request, exc) -> JSONResponse:
    message = "Resource not found."
    # Routers raise 404 with a specific detail; keep it
    if isinstance(exc, StarletteHTTPException) and isinstance(exc.detail, str) and exc.detail != "Not Found":
        message = exc.detail
    return _error(request, 404, "NOT_FOUND", message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"{location}: {first.get('msg', 'invalid value')}"
    else:
        message = "Validation error."
    return _error(request, 422, "VALIDATION_ERROR", message)


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error(request, 500, "INTERNAL_ERROR", "An unexpected error occurred.")
