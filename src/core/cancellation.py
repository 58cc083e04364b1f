"""Cooperative cancellation for a single run.

The controller owns the only writer (`cancel`); every step and every
network call reads it. Steps check it at their boundaries with
`raise_if_cancelled`, and in-flight calls are wrapped with `guard` so that
stopping a run aborts the HTTP request instead of waiting for it.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from core.domain.errors import RunCancelled

T = TypeVar("T")

Listener = Callable[[], None]


class CancellationToken:
    """Single-use, idempotent cancel flag with listeners."""

    def __init__(self) -> None:
        self._cancelled = False
        self._listeners: list[Listener] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            listener()

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register `listener`; returns a callable that unregisters it.

        A listener added after cancellation is invoked immediately.
        """

        if self._cancelled:
            listener()
            return lambda: None
        self._listeners.append(listener)

        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return remove

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RunCancelled()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable`, aborting it if the token fires meanwhile."""

        if self._cancelled:
            # Close an un-awaited coroutine so it does not warn.
            close = getattr(awaitable, "close", None)
            if callable(close):
                close()
            raise RunCancelled()

        task = asyncio.ensure_future(awaitable)
        remove = self.add_listener(task.cancel)
        try:
            return await task
        except asyncio.CancelledError:
            if self._cancelled:
                raise RunCancelled() from None
            raise
        finally:
            remove()
