import asyncio

import pytest

from core.cancellation import CancellationToken
from core.domain.errors import RunCancelled


def test_cancel_is_idempotent_and_listeners_fire_once():
    token = CancellationToken()
    fired = []
    token.add_listener(lambda: fired.append("a"))

    token.cancel()
    token.cancel()

    assert token.cancelled
    assert fired == ["a"]


def test_listener_added_after_cancel_fires_immediately():
    token = CancellationToken()
    token.cancel()
    fired = []

    token.add_listener(lambda: fired.append("late"))

    assert fired == ["late"]


def test_removed_listener_is_not_called():
    token = CancellationToken()
    fired = []
    remove = token.add_listener(lambda: fired.append("x"))

    remove()
    remove()
    token.cancel()

    assert fired == []


def test_raise_if_cancelled():
    token = CancellationToken()
    token.raise_if_cancelled()

    token.cancel()

    with pytest.raises(RunCancelled):
        token.raise_if_cancelled()


def test_guard_returns_the_awaited_value():
    async def value():
        return 7

    assert asyncio.run(CancellationToken().guard(value())) == 7


def test_guard_aborts_in_flight_call():
    async def scenario():
        token = CancellationToken()
        started = asyncio.Event()
        finished = []

        async def slow():
            started.set()
            await asyncio.sleep(10)
            finished.append(True)

        async def stopper():
            await started.wait()
            token.cancel()

        stop_task = asyncio.ensure_future(stopper())
        with pytest.raises(RunCancelled):
            await token.guard(slow())
        await stop_task
        return finished

    assert asyncio.run(scenario()) == []


def test_guard_on_cancelled_token_never_starts_the_call():
    started = []

    async def call():
        started.append(True)

    async def scenario():
        token = CancellationToken()
        token.cancel()
        with pytest.raises(RunCancelled):
            await token.guard(call())

    asyncio.run(scenario())
    assert started == []
