"""Public eco catalog.

Lets operators discover plan codes before configuring a task. The catalog
endpoint is unauthenticated and lives under `/v1`, not the order API's `/1.0`.
"""

from __future__ import annotations

from typing import Any

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import OrderApiError
from core.domain.models import CatalogPlan


def catalog_url(endpoint: str) -> str:
    host = endpoint.strip().rstrip("/")
    if not host.startswith(("http://", "https://")):
        host = f"https://{host}"
    return f"{host}/v1/order/catalog/public/eco"


def parse_catalog(payload: Any) -> list[CatalogPlan]:
    if not isinstance(payload, dict):
        return []
    plans = payload.get("plans", [])
    out: list[CatalogPlan] = []
    if isinstance(plans, list):
        for plan in plans:
            if not isinstance(plan, dict) or not plan.get("planCode"):
                continue
            out.append(CatalogPlan.model_validate(plan))
    return out


async def fetch_catalog(
    *,
    endpoint: str,
    zone: str,
    settings: AppSettings | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[CatalogPlan]:
    settings = settings or AppSettings()
    url = catalog_url(endpoint)
    try:
        if client is not None:
            response = await client.get(url, params={"ovhSubsidiary": zone})
        else:
            async with build_async_client(settings) as own:
                response = await own.get(url, params={"ovhSubsidiary": zone})
    except httpx.HTTPError as exc:
        raise OrderApiError(f"Failed to fetch the product catalog: {exc}") from exc

    if response.status_code != 200:
        raise OrderApiError(
            f"Failed to fetch the product catalog: {response.status_code}",
            status_code=response.status_code,
            body=response.text,
        )
    try:
        payload = response.json()
    except ValueError as exc:
        raise OrderApiError(
            "Product catalog returned invalid JSON",
            status_code=response.status_code,
            body=response.text,
        ) from exc
    return parse_catalog(payload)
