"""Shared fakes and fixtures.

`FakeOrderApi` records every call it receives, in order, so tests can
assert on the exact sequence the pipeline issued. Failures are injected per
method name, or per (method, label/plan code) for configuration entries
and options; `hooks` run synchronously when a method is called, which is how
tests fire the cancellation token "between" steps.
"""

from __future__ import annotations

from typing import Any, Callable

import pytest

from core.cancellation import CancellationToken
from core.config import AppSettings
from core.domain.models import AvailabilitySelection, Credentials, TaskSpec, TelegramConfig

ORDER_URL = "https://www.ovh.com/cgi-bin/order/display-order.cgi?orderId=1234"


class FakeOrderApi:
    def __init__(
        self,
        availabilities: list[dict[str, Any]] | None = None,
        *,
        fail: dict[Any, Exception] | None = None,
        hooks: dict[str, Callable[[], None]] | None = None,
    ) -> None:
        self.availabilities = availabilities if availabilities is not None else []
        self.fail = dict(fail or {})
        self.hooks = dict(hooks or {})
        self.calls: list[tuple[Any, ...]] = []
        self.cart_payload: Any = {"cartId": "cart-1"}
        self.item_payload: Any = {"itemId": 42}
        self.required_configuration: Any = [
            {"label": "dedicated_os", "required": True, "allowedValues": ["none_64.en"]},
            {"label": "region", "required": True, "allowedValues": ["europe", "canada"]},
        ]
        self.checkout_payload: Any = {"orderId": 1234, "url": ORDER_URL}

    async def __aenter__(self) -> "FakeOrderApi":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    @property
    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def _record(self, token: CancellationToken, name: str, *args: Any, key: Any = None) -> None:
        token.raise_if_cancelled()
        self.calls.append((name, *args))
        hook = self.hooks.get(name)
        if hook is not None:
            hook()
        error = self.fail.get(key if key is not None else name)
        if error is not None:
            raise error

    async def get_availabilities(self, plan_code, *, token):
        self._record(token, "get_availabilities", plan_code)
        return self.availabilities

    async def create_cart(self, zone, *, token):
        self._record(token, "create_cart", zone)
        return self.cart_payload

    async def assign_cart(self, cart_id, *, token):
        self._record(token, "assign_cart", cart_id)
        return None

    async def add_item(self, cart_id, plan_code, duration, *, token):
        self._record(token, "add_item", cart_id, plan_code, duration)
        return self.item_payload

    async def get_required_configuration(self, cart_id, item_id, *, token):
        self._record(token, "get_required_configuration", cart_id, item_id)
        return self.required_configuration

    async def configure_item(self, cart_id, item_id, label, value, *, token):
        self._record(token, "configure_item", cart_id, item_id, label, value, key=("configure_item", label))
        return {"label": label, "value": value}

    async def add_option(self, cart_id, item_id, plan_code, duration, *, token):
        self._record(token, "add_option", cart_id, item_id, plan_code, duration, key=("add_option", plan_code))
        return {"itemId": 43}

    async def get_cart(self, cart_id, *, token):
        self._record(token, "get_cart", cart_id)
        return {"cartId": cart_id, "items": [42]}

    async def get_checkout(self, cart_id, *, token):
        self._record(token, "get_checkout", cart_id)
        return {"prices": {"withTax": {"value": 12.0}}}

    async def checkout(self, cart_id, *, token):
        self._record(token, "checkout", cart_id)
        return self.checkout_payload


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[str] = []

    async def notify(self, text: str, *, token: CancellationToken | None = None) -> None:
        self.messages.append(text)


IN_STOCK = [
    {
        "fqn": "24ska01.ram-64g.disk-2x2000",
        "planCode": "24ska01",
        "datacenters": [
            {"datacenter": "rbx", "availability": "unavailable"},
            {"datacenter": "gra", "availability": "1H-high"},
        ],
    }
]

OUT_OF_STOCK = [
    {
        "fqn": "24ska01.ram-64g.disk-2x2000",
        "datacenters": [
            {"datacenter": "rbx", "availability": "unavailable"},
            {"datacenter": "gra", "availability": "unknown"},
        ],
    }
]


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(_env_file=None)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(app_key="ak", app_secret="as", consumer_key="ck", endpoint="eu.api.ovh.com")


@pytest.fixture
def task_spec() -> TaskSpec:
    return TaskSpec(
        iam="rack-1",
        zone="IE",
        plan_code="24ska01",
        os="none_64.en",
        duration="P1M",
        options=("bandwidth-300-24sk", "ram-64g-noecc-2133-24ska01"),
    )


@pytest.fixture
def selection() -> AvailabilitySelection:
    return AvailabilitySelection(fqn="24ska01.ram-64g.disk-2x2000", datacenter="gra", availability="1H-high")


@pytest.fixture
def telegram_enabled() -> TelegramConfig:
    return TelegramConfig(token="123:abc", chat_id="42", enabled=True)


@pytest.fixture
def telegram_disabled() -> TelegramConfig:
    return TelegramConfig(token="123:abc", chat_id="42", enabled=False)
