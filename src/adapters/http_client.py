"""httpx wrapper.

Why a wrapper:
- Standardizes timeouts, headers and base URLs for the order API, the
  public catalog and Telegram.
- Eases testing: callers accept an injected `httpx.AsyncClient`, so tests
  can swap in one backed by `httpx.MockTransport`.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings
from core.domain.models import Credentials


def build_async_client(
    settings: AppSettings | None = None,
    *,
    base_url: str = "",
    extra_headers: dict[str, str] | None = None,
    auth: httpx.Auth | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` with safe defaults.

    Why a builder:
    - Centralizes timeouts/headers so every outbound call behaves the same.
    - Keeps the `transport` seam in one place for tests.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        auth=auth,
        transport=transport,
    )


def api_base_url(endpoint: str, settings: AppSettings | None = None) -> str:
    """`https://<endpoint>/1.0`, accepting endpoints that already carry a scheme."""

    settings = settings or AppSettings()
    host = endpoint.strip().rstrip("/")
    if not host.startswith(("http://", "https://")):
        host = f"https://{host}"
    return f"{host}{settings.api_base_path}"


def build_order_api_client(
    credentials: Credentials,
    settings: AppSettings | None = None,
    *,
    auth: httpx.Auth | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    settings = settings or AppSettings()
    return build_async_client(
        settings,
        base_url=api_base_url(credentials.endpoint, settings),
        extra_headers={
            "Content-Type": "application/json",
            "X-Ovh-Application": credentials.app_key,
            "X-Ovh-Consumer": credentials.consumer_key,
        },
        auth=auth,
        transport=transport,
    )
