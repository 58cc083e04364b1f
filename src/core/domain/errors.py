"""Domain exceptions.

Everything the core raises derives from `SniperError`, so the run boundary in
`TaskController` can turn step failures into log lines without catching
unrelated programming errors by name.
"""

from __future__ import annotations


class SniperError(Exception):
    """Base class for every error raised by the core."""


class OrderApiError(SniperError):
    """Non-2xx answer or transport failure from the order API."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class PipelineError(SniperError):
    """A fatal step failure: the run must stop."""

    def __init__(self, step: str, message: str) -> None:
        super().__init__(message)
        self.step = step


class RunCancelled(SniperError):
    """The run's cancellation token fired."""

    def __init__(self, message: str = "Request cancelled") -> None:
        super().__init__(message)


class TaskAlreadyRunning(SniperError):
    """`start` was called while another run is active on the controller."""


class ConfigStoreError(SniperError):
    """The saved config bundle is missing or unreadable."""
