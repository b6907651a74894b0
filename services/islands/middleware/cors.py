"""
CORS for the islands API.

Configured origins only, never a wildcard. In development any localhost port
is also accepted so the Vite and Next dev servers can call the API directly.
The API is read-mostly: GET for state, POST for city selection and retry.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from services.islands.config import Settings, settings

_LOCALHOST_ANY_PORT = r"^http://(localhost|127\.0\.0\.1)(:\d+)?$"


def setup_cors(app: FastAPI, cfg: Settings = settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_origin_regex=_LOCALHOST_ANY_PORT if cfg.environment == "development" else None,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        max_age=600,
    )
