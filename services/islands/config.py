"""
Application configuration via pydantic-settings.
All config read from environment variables with sensible defaults for local dev.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_name: str = "islands-api"
    app_version: str = "0.1.0"
    environment: str = Field(default="development", pattern=r"^(development|staging|production)$")
    debug: bool = False
    log_level: str = Field(default="INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    # CORS
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    # Sentry
    sentry_dsn: str = ""
    sentry_traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)

    # TomTom Flow Segment Data
    # Free tier: 2,500 requests/day. An empty key disables the live traffic stage.
    tomtom_api_key: str = ""
    tomtom_base_url: str = "https://api.tomtom.com/traffic/services/4/flowSegmentData"

    # Ski forecast proxy (forwards to Weather Unlocked by numeric resort id).
    # Empty disables the remote ski stage; the heuristic engine still runs.
    ski_proxy_base_url: str = ""

    # Open-Meteo Marine (free, no key)
    marine_api_base_url: str = "https://marine-api.open-meteo.com/v1/marine"

    # Shared HTTP timeout for every external call
    http_timeout_s: float = Field(default=8.0, gt=0.0)

    # Traffic widget
    traffic_max_routes: int = Field(default=6, ge=1)

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}


settings = Settings()
