"""Order-API contract.

Why Protocol:
- Structural contract (duck typing) without rigid inheritance.
- The pipeline and the scanner depend on this, not on httpx; tests plug in
  in-memory fakes that record the calls they receive.

Design rules:
- Every method is async because it is one network round-trip.
- Every method takes the run's `CancellationToken` and must abort its
  in-flight request, raising `RunCancelled`, when the token fires.
- Non-2xx answers and transport failures raise `OrderApiError`.
- Methods return the decoded JSON body (``None`` for empty answers); the
  caller decides which fields it needs.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from core.cancellation import CancellationToken


@runtime_checkable
class OrderApi(Protocol):
    async def get_availabilities(self, plan_code: str, *, token: CancellationToken) -> Any: ...

    async def create_cart(self, zone: str, *, token: CancellationToken) -> Any: ...

    async def assign_cart(self, cart_id: str, *, token: CancellationToken) -> Any: ...

    async def add_item(
        self, cart_id: str, plan_code: str, duration: str, *, token: CancellationToken
    ) -> Any: ...

    async def get_required_configuration(
        self, cart_id: str, item_id: int | str, *, token: CancellationToken
    ) -> Any: ...

    async def configure_item(
        self, cart_id: str, item_id: int | str, label: str, value: str, *, token: CancellationToken
    ) -> Any: ...

    async def add_option(
        self, cart_id: str, item_id: int | str, plan_code: str, duration: str, *, token: CancellationToken
    ) -> Any: ...

    async def get_cart(self, cart_id: str, *, token: CancellationToken) -> Any: ...

    async def get_checkout(self, cart_id: str, *, token: CancellationToken) -> Any: ...

    async def checkout(self, cart_id: str, *, token: CancellationToken) -> Any: ...
