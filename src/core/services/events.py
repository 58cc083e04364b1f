"""Run event stream.

The orchestration layer writes `LogEvent`s here; the presentation layer
reads them, either live through listeners or afterwards via `events`.
Single producer per run, append-only, emission order preserved.
"""

from __future__ import annotations

from typing import Callable, Iterable

from core.domain.models import LogEvent, LogLevel

EventListener = Callable[[LogEvent], None]


class EventLog:
    def __init__(self, listeners: Iterable[EventListener] = ()) -> None:
        self._events: list[LogEvent] = []
        self._listeners: list[EventListener] = list(listeners)

    @property
    def events(self) -> tuple[LogEvent, ...]:
        return tuple(self._events)

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def emit(self, level: LogLevel, message: str) -> LogEvent:
        event = LogEvent(level=level, message=message)
        self._events.append(event)
        for listener in self._listeners:
            listener(event)
        return event

    def info(self, message: str) -> LogEvent:
        return self.emit(LogLevel.INFO, message)

    def success(self, message: str) -> LogEvent:
        return self.emit(LogLevel.SUCCESS, message)

    def warning(self, message: str) -> LogEvent:
        return self.emit(LogLevel.WARNING, message)

    def error(self, message: str) -> LogEvent:
        return self.emit(LogLevel.ERROR, message)
