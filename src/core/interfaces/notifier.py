"""Notification-sink contract."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.cancellation import CancellationToken


@runtime_checkable
class Notifier(Protocol):
    """Best-effort delivery of a text message.

    Rules:
    - `notify` never raises: delivery problems are logged by the implementation.
    - A disabled or incomplete configuration makes it a no-op.
    """

    async def notify(self, text: str, *, token: CancellationToken | None = None) -> None:
        ...
