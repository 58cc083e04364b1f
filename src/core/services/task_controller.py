"""Task orchestration: scan, then buy, then report.

This module is the run boundary. It owns the cancellation token of the
active run, wires the scanner, the pipeline and the notifier to a fresh
`EventLog`, and converts every step-level error into a log line plus a
`TaskResult`. Only `TaskAlreadyRunning` escapes `start`.

One run at a time per controller; `stop()` is the only way to end a run early.
"""

from __future__ import annotations

from typing import AsyncContextManager, Callable, Iterable

from adapters.ovh_api import OvhOrderApi
from adapters.telegram_notifier import TelegramNotifier
from core.cancellation import CancellationToken
from core.config import AppSettings
from core.domain.errors import RunCancelled, SniperError, TaskAlreadyRunning
from core.domain.models import (
    AvailabilityRecord,
    AvailabilitySelection,
    CheckoutResult,
    Credentials,
    RunOutcome,
    TaskResult,
    TaskSpec,
    TaskStatus,
    TelegramConfig,
)
from core.interfaces.notifier import Notifier
from core.interfaces.order_api import OrderApi
from core.services.availability_scanner import AvailabilityScanner
from core.services.events import EventListener, EventLog
from core.services.order_pipeline import OrderPipeline

ApiFactory = Callable[[Credentials, AppSettings], AsyncContextManager[OrderApi]]
NotifierFactory = Callable[[TelegramConfig | None, EventLog, AppSettings], Notifier]

_STATUS_BY_OUTCOME: dict[RunOutcome, TaskStatus] = {
    RunOutcome.COMPLETED: TaskStatus.COMPLETED,
    RunOutcome.NOT_FOUND: TaskStatus.FAILED,
    RunOutcome.FAILED: TaskStatus.FAILED,
    RunOutcome.CANCELLED: TaskStatus.CANCELLED,
}


def _default_api_factory(credentials: Credentials, settings: AppSettings) -> OvhOrderApi:
    return OvhOrderApi(credentials, settings)


def _default_notifier_factory(
    telegram: TelegramConfig | None, events: EventLog, settings: AppSettings
) -> TelegramNotifier:
    return TelegramNotifier(telegram, events, settings)


class TaskController:
    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        api_factory: ApiFactory | None = None,
        notifier_factory: NotifierFactory | None = None,
        listeners: Iterable[EventListener] = (),
    ) -> None:
        self._settings = settings or AppSettings()
        self._api_factory = api_factory or _default_api_factory
        self._notifier_factory = notifier_factory or _default_notifier_factory
        self._listeners = list(listeners)
        self._token: CancellationToken | None = None
        self._status = TaskStatus.IDLE
        self.last_result: TaskResult | None = None

    @property
    def status(self) -> TaskStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._token is not None

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def stop(self) -> None:
        """Cancel the active run. No-op when idle."""

        if self._token is not None:
            self._token.cancel()

    async def start(
        self,
        spec: TaskSpec,
        credentials: Credentials,
        telegram: TelegramConfig | None = None,
    ) -> TaskResult:
        if self._token is not None:
            raise TaskAlreadyRunning("A task is already running on this controller")

        token = CancellationToken()
        self._token = token
        self._status = TaskStatus.RUNNING
        events = EventLog(self._listeners)
        result: TaskResult | None = None
        try:
            result = await self._execute(spec, credentials, telegram, token, events)
        finally:
            self._token = None
            self._status = (
                _STATUS_BY_OUTCOME[result.outcome] if result is not None else TaskStatus.FAILED
            )

        self.last_result = result
        return result

    async def _execute(
        self,
        spec: TaskSpec,
        credentials: Credentials,
        telegram: TelegramConfig | None,
        token: CancellationToken,
        events: EventLog,
    ) -> TaskResult:
        notifier = self._notifier_factory(telegram, events, self._settings)
        notify = telegram is not None and telegram.enabled

        records: list[AvailabilityRecord] = []
        selection: AvailabilitySelection | None = None

        def result(outcome: RunOutcome, **extra: object) -> TaskResult:
            return TaskResult(
                succeeded=outcome is RunOutcome.COMPLETED,
                outcome=outcome,
                events=events.events,
                records=records,
                selection=selection,
                **extra,
            )

        events.info("Starting purchase task...")
        try:
            async with self._api_factory(credentials, self._settings) as api:
                events.info("Checking server availability...")
                scan = await AvailabilityScanner(api, events).scan(spec.plan_code, token=token)
                records = scan.records
                if scan.selection is None:
                    return result(RunOutcome.NOT_FOUND)
                selection = scan.selection

                token.raise_if_cancelled()
                if notify:
                    await notifier.notify(
                        f"{spec.iam}: {spec.plan_code} ({selection.fqn}) available in {selection.datacenter}",
                        token=token,
                    )

                pipeline = OrderPipeline(
                    api, events, token, attach_options=self._settings.attach_options
                )
                checkout: CheckoutResult = await pipeline.run(spec, selection)
        except RunCancelled:
            events.info("Task stopped manually")
            return result(RunOutcome.CANCELLED)
        except SniperError as exc:
            reason = str(exc)
            events.error(f"Task failed: {reason}")
            if notify:
                await notifier.notify(f"{spec.iam}: operation failed - {reason}")
            return result(RunOutcome.FAILED, reason=reason)

        if notify:
            await notifier.notify(
                f"{spec.iam}: order {checkout.order_id_display} created and submitted!\n"
                f"Server: {selection.fqn}\n"
                f"Datacenter: {selection.datacenter}\n"
                f"Order URL: {checkout.url_display}"
            )
        events.success("Task completed successfully!")
        return result(RunOutcome.COMPLETED, checkout=checkout)
