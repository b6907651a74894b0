"""
Sentry instrumentation for the islands service.
Server-side only. Strips the TomTom key from outgoing-request breadcrumbs
and sensitive headers from request data.
"""

import re
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from services.islands.config import settings

SENSITIVE_HEADERS = {"authorization", "cookie", "set-cookie"}

_KEY_PARAM = re.compile(r"([?&]key=)[^&]+")


def _scrub_url(url: str) -> str:
    return _KEY_PARAM.sub(r"\1[FILTERED]", url)


def _strip_sensitive_data(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any] | None:
    """before_send hook: filter API keys in httpx breadcrumbs and sensitive request headers."""
    if "breadcrumbs" in event:
        for breadcrumb in event["breadcrumbs"].get("values", []):
            data = breadcrumb.get("data", {})
            if isinstance(data, dict) and isinstance(data.get("url"), str):
                data["url"] = _scrub_url(data["url"])
    request = event.get("request", {})
    if isinstance(request, dict):
        headers = request.get("headers", {})
        if isinstance(headers, dict):
            for key in list(headers.keys()):
                if key.lower() in SENSITIVE_HEADERS:
                    headers[key] = "[FILTERED]"
    return event


def setup_sentry() -> None:
    if not settings.sentry_dsn:
        return

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=f"{settings.app_name}@{settings.app_version}",
        traces_sample_rate=settings.sentry_traces_sample_rate,
        before_send=_strip_sensitive_data,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        send_default_pii=False,
    )
