"""Order API adapter (OVH REST over httpx).

Responsibility:
- Map each `OrderApi` operation to its method, path and JSON body.
- Turn non-2xx answers and transport errors into `OrderApiError`.
- Run every request under the run's `CancellationToken`, so `stop()` aborts
  the in-flight call and surfaces as `RunCancelled`.

Signing:
- Requests carry the application and consumer headers only. Timestamp and
  signature are the job of an external signer, plugged in as `httpx.Auth`.
"""

from __future__ import annotations

from typing import Any

import httpx

from adapters.http_client import build_order_api_client
from core.cancellation import CancellationToken
from core.config import AppSettings
from core.domain.errors import OrderApiError
from core.domain.models import Credentials

CHECKOUT_POLICY: dict[str, bool] = {
    "autoPayWithPreferredPaymentMethod": False,
    "waiveRetractationPeriod": True,
}


class OvhOrderApi:
    """httpx implementation of `core.interfaces.order_api.OrderApi`.

    Usable as an async context manager; the underlying client is closed on exit
    unless it was injected by the caller.
    """

    def __init__(
        self,
        credentials: Credentials,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        auth: httpx.Auth | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._owns_client = client is None
        self._client = client or build_order_api_client(credentials, self._settings, auth=auth)

    async def __aenter__(self) -> "OvhOrderApi":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _call(
        self,
        method: str,
        path: str,
        *,
        token: CancellationToken,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        try:
            response = await token.guard(
                self._client.request(method, path, json=body, params=params)
            )
        except httpx.HTTPError as exc:
            raise OrderApiError(f"Order API request failed ({method} {path}): {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            text = response.text
            raise OrderApiError(
                f"Order API request failed ({response.status_code}): {text}",
                status_code=response.status_code,
                body=text,
            )
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise OrderApiError(
                f"Order API returned invalid JSON ({method} {path})",
                status_code=response.status_code,
                body=response.text,
            ) from exc

    async def get_availabilities(self, plan_code: str, *, token: CancellationToken) -> Any:
        return await self._call(
            "GET",
            "/dedicated/server/datacenter/availabilities",
            params={"planCode": plan_code},
            token=token,
        )

    async def create_cart(self, zone: str, *, token: CancellationToken) -> Any:
        return await self._call("POST", "/order/cart", body={"ovhSubsidiary": zone}, token=token)

    async def assign_cart(self, cart_id: str, *, token: CancellationToken) -> Any:
        return await self._call("POST", f"/order/cart/{cart_id}/assign", token=token)

    async def add_item(
        self, cart_id: str, plan_code: str, duration: str, *, token: CancellationToken
    ) -> Any:
        return await self._call(
            "POST",
            f"/order/cart/{cart_id}/eco",
            body={"planCode": plan_code, "pricingMode": "default", "duration": duration, "quantity": 1},
            token=token,
        )

    async def get_required_configuration(
        self, cart_id: str, item_id: int | str, *, token: CancellationToken
    ) -> Any:
        return await self._call(
            "GET", f"/order/cart/{cart_id}/item/{item_id}/requiredConfiguration", token=token
        )

    async def configure_item(
        self, cart_id: str, item_id: int | str, label: str, value: str, *, token: CancellationToken
    ) -> Any:
        return await self._call(
            "POST",
            f"/order/cart/{cart_id}/item/{item_id}/configuration",
            body={"label": label, "value": value},
            token=token,
        )

    async def add_option(
        self, cart_id: str, item_id: int | str, plan_code: str, duration: str, *, token: CancellationToken
    ) -> Any:
        return await self._call(
            "POST",
            f"/order/cart/{cart_id}/item/{item_id}/option",
            body={"planCode": plan_code, "pricingMode": "default", "duration": duration, "quantity": 1},
            token=token,
        )

    async def get_cart(self, cart_id: str, *, token: CancellationToken) -> Any:
        return await self._call("GET", f"/order/cart/{cart_id}", token=token)

    async def get_checkout(self, cart_id: str, *, token: CancellationToken) -> Any:
        return await self._call("GET", f"/order/cart/{cart_id}/checkout", token=token)

    async def checkout(self, cart_id: str, *, token: CancellationToken) -> Any:
        return await self._call(
            "POST", f"/order/cart/{cart_id}/checkout", body=dict(CHECKOUT_POLICY), token=token
        )
