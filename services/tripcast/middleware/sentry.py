"""
Sentry instrumentation for the tripcast service.
Server-side only. Strips sensitive headers and the weather API key from events.
"""

from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.httpx import HttpxIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from services.tripcast.config import settings

SENSITIVE_HEADERS = {"authorization", "cookie", "set-cookie"}
SENSITIVE_QUERY_KEYS = {"apikey"}


def _scrub_headers(headers: Any) -> None:
    if isinstance(headers, dict):
        for key in list(headers.keys()):
            if key.lower() in SENSITIVE_HEADERS:
                headers[key] = "[FILTERED]"


def _scrub_query(query: Any) -> Any:
    """Replace apikey=... values in a bare query string."""
    if not isinstance(query, str) or not query:
        return query
    parts = []
    for pair in query.split("&"):
        name, sep, _value = pair.partition("=")
        if sep and name.lower() in SENSITIVE_QUERY_KEYS:
            parts.append(f"{name}=[FILTERED]")
        else:
            parts.append(pair)
    return "&".join(parts)


def _scrub_url(url: Any) -> Any:
    """Replace apikey=... query values in a URL string."""
    if not isinstance(url, str) or "?" not in url:
        return url
    base, _, query = url.partition("?")
    return f"{base}?{_scrub_query(query)}"


def _strip_sensitive_data(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any] | None:
    """before_send hook: strip auth headers, cookies, and provider API keys."""
    if "breadcrumbs" in event:
        for breadcrumb in event["breadcrumbs"].get("values", []):
            data = breadcrumb.get("data", {})
            if isinstance(data, dict):
                _scrub_headers(data.get("headers", {}))
                # httpx breadcrumbs split the outbound URL from its query string
                if "url" in data:
                    data["url"] = _scrub_url(data["url"])
                if "http.query" in data:
                    data["http.query"] = _scrub_query(data["http.query"])

    request = event.get("request", {})
    if isinstance(request, dict):
        _scrub_headers(request.get("headers", {}))
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
            HttpxIntegration(),
        ],
        send_default_pii=False,
    )
