"""Purchase pipeline: cart → assign → item → configuration → checkout.

A strict linear state machine. Each step is one order-API call whose result
the next step depends on, so nothing runs in parallel and nothing is retried.

Failure policy:
- Cart creation/assignment, item add, cart reads and checkout are fatal.
- The datacenter configuration entry is fatal too: without it the order is
  no longer for the unit the scan just saw in stock.
- Every other configuration entry and every add-on option is best-effort:
  the failure is logged and the run continues.

The cancellation token is checked before every step and after every
configuration entry; a fired token ends the run in `CANCELLED`, never `FAILED`.
Carts are not rolled back.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from core.cancellation import CancellationToken
from core.domain.errors import OrderApiError, PipelineError, RunCancelled
from core.domain.models import (
    AvailabilitySelection,
    Cart,
    CheckoutResult,
    ConfigurationEntry,
    PipelineState,
    RequiredConfiguration,
    TaskSpec,
)
from core.interfaces.order_api import OrderApi
from core.services.events import EventLog

DATACENTER_LABEL = "dedicated_datacenter"
OS_LABEL = "dedicated_os"
REGION_LABEL = "region"


def _field(payload: Any, key: str) -> Any:
    if isinstance(payload, dict):
        return payload.get(key)
    return None


def discover_region(payload: Any) -> str | None:
    """First allowed value of the `region` label, if the provider asks for one."""

    if not isinstance(payload, list):
        return None
    for raw in payload:
        if not isinstance(raw, dict):
            continue
        try:
            config = RequiredConfiguration.model_validate(raw)
        except ValidationError:
            continue
        if config.label == REGION_LABEL and config.allowed_values:
            return config.allowed_values[0]
    return None


class OrderPipeline:
    def __init__(
        self,
        api: OrderApi,
        events: EventLog,
        token: CancellationToken,
        *,
        attach_options: bool = False,
    ) -> None:
        self._api = api
        self._events = events
        self._token = token
        self._attach_options = attach_options
        self._step = "idle"
        self.state = PipelineState.IDLE
        self.cart: Cart | None = None

    async def run(self, task: TaskSpec, selection: AvailabilitySelection) -> CheckoutResult:
        try:
            return await self._run(task, selection)
        except RunCancelled:
            self.state = PipelineState.CANCELLED
            raise
        except PipelineError:
            self.state = PipelineState.FAILED
            raise
        except OrderApiError as exc:
            self.state = PipelineState.FAILED
            raise PipelineError(self._step, str(exc)) from exc

    def _checkpoint(self, step: str) -> None:
        self._token.raise_if_cancelled()
        self._step = step

    async def _run(self, task: TaskSpec, selection: AvailabilitySelection) -> CheckoutResult:
        cart = await self._create_cart(task)
        await self._assign_cart(cart)
        await self._add_item(cart, task)

        self._checkpoint("required_configuration")
        self._events.info(f"Checking required configuration for item {cart.item_id}...")
        required = await self._api.get_required_configuration(
            cart.cart_id, cart.item_id, token=self._token
        )
        self._events.info("Required configuration retrieved")

        entries = [
            ConfigurationEntry(label=DATACENTER_LABEL, value=selection.datacenter),
            ConfigurationEntry(label=OS_LABEL, value=task.os),
            ConfigurationEntry(label=REGION_LABEL, value=discover_region(required)),
        ]
        await self._apply_configuration(cart, entries)
        self.state = PipelineState.CONFIGURED

        if self._attach_options and task.options:
            await self._add_options(cart, task)

        self._checkpoint("cart_summary")
        self._events.info(f"Fetching summary of cart {cart.cart_id}...")
        await self._api.get_cart(cart.cart_id, token=self._token)
        self._events.info("Cart summary retrieved")

        self._checkpoint("checkout_info")
        self._events.info(f"Fetching checkout information for cart {cart.cart_id}...")
        await self._api.get_checkout(cart.cart_id, token=self._token)
        self._events.info("Checkout information retrieved")
        self.state = PipelineState.CHECKOUT_READY

        return await self._checkout(cart)

    async def _create_cart(self, task: TaskSpec) -> Cart:
        self._checkpoint("create_cart")
        self._events.info(f"Creating cart for subsidiary {task.zone}...")
        payload = await self._api.create_cart(task.zone, token=self._token)
        cart_id = _field(payload, "cartId")
        if not cart_id:
            raise PipelineError(self._step, "Failed to create cart: no cart id returned")
        self.cart = Cart(cart_id=str(cart_id))
        self.state = PipelineState.CART_CREATED
        self._events.success(f"Cart created, ID: {self.cart.cart_id}")
        return self.cart

    async def _assign_cart(self, cart: Cart) -> None:
        self._checkpoint("assign_cart")
        self._events.info(f"Assigning cart {cart.cart_id}...")
        await self._api.assign_cart(cart.cart_id, token=self._token)
        self.state = PipelineState.CART_ASSIGNED
        self._events.success("Cart assigned")

    async def _add_item(self, cart: Cart, task: TaskSpec) -> None:
        self._checkpoint("add_item")
        self._events.info(f"Adding {task.plan_code} to cart {cart.cart_id}...")
        payload = await self._api.add_item(
            cart.cart_id, task.plan_code, task.duration, token=self._token
        )
        item_id = _field(payload, "itemId")
        if item_id is None or item_id == "":
            raise PipelineError(self._step, "Failed to add item: no item id returned")
        cart.item_id = item_id
        self.state = PipelineState.ITEM_ADDED
        self._events.success(f"Item added, item ID: {item_id}")

    async def _apply_configuration(self, cart: Cart, entries: list[ConfigurationEntry]) -> None:
        self._checkpoint("configure")
        for entry in entries:
            if not entry.value:
                self._events.warning(f"Configuration {entry.label} has no value, skipping")
                continue

            self._events.info(f"Configuring item {cart.item_id}: {entry.label} = {entry.value}")
            try:
                await self._api.configure_item(
                    cart.cart_id, cart.item_id, entry.label, entry.value, token=self._token
                )
            except OrderApiError as exc:
                self._events.error(f"Configuring {entry.label} = {entry.value} failed: {exc}")
                if entry.label == DATACENTER_LABEL:
                    raise PipelineError(
                        self._step,
                        f"Critical configuration {entry.label} failed, aborting purchase",
                    ) from exc
            self._token.raise_if_cancelled()

    async def _add_options(self, cart: Cart, task: TaskSpec) -> None:
        self._checkpoint("add_options")
        self._events.info(f"Adding options to item {cart.item_id}...")
        for plan_code in task.options:
            self._events.info(f"Adding option: {plan_code}")
            try:
                await self._api.add_option(
                    cart.cart_id, cart.item_id, plan_code, task.duration, token=self._token
                )
            except OrderApiError as exc:
                self._events.error(f"Adding option {plan_code} failed: {exc}")
            else:
                self._events.success(f"Option {plan_code} added")
            self._token.raise_if_cancelled()

    async def _checkout(self, cart: Cart) -> CheckoutResult:
        self._checkpoint("checkout")
        self._events.info(f"Checking out cart {cart.cart_id}...")
        payload = await self._api.checkout(cart.cart_id, token=self._token)
        if not isinstance(payload, dict):
            raise PipelineError(self._step, "Checkout failed: no order returned")

        try:
            result = CheckoutResult.model_validate(payload)
        except ValidationError as exc:
            raise PipelineError(self._step, f"Checkout failed: unexpected answer ({exc})") from exc

        self.state = PipelineState.COMPLETED
        self._events.success("Checkout request submitted!")
        self._events.success(f"Order created! Order ID: {result.order_id_display}")
        self._events.info(f"Order URL: {result.url_display}")
        return result
