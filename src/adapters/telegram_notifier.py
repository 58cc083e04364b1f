"""Notification sink: Telegram Bot API.

Best-effort by contract: whatever goes wrong is written to the run's
`EventLog` and swallowed, so a notification can never change a run's outcome.
"""

from __future__ import annotations

import httpx

from adapters.http_client import build_async_client
from core.cancellation import CancellationToken
from core.config import AppSettings
from core.domain.errors import RunCancelled
from core.domain.models import TelegramConfig
from core.services.events import EventLog


class TelegramNotifier:
    def __init__(
        self,
        config: TelegramConfig | None,
        events: EventLog,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or TelegramConfig()
        self._events = events
        self._settings = settings or AppSettings()
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._config.is_complete

    def _send_url(self) -> str:
        base = self._settings.telegram_api_base_url.rstrip("/")
        return f"{base}/bot{self._config.token}/sendMessage"

    async def notify(self, text: str, *, token: CancellationToken | None = None) -> None:
        if not self.enabled:
            return

        payload = {"chat_id": self._config.chat_id, "text": text}
        token = token or CancellationToken()
        try:
            if self._client is not None:
                response = await token.guard(self._client.post(self._send_url(), json=payload))
            else:
                async with build_async_client(self._settings) as client:
                    response = await token.guard(client.post(self._send_url(), json=payload))
        except RunCancelled:
            self._events.info("Telegram notification aborted")
            return
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self._events.error(f"Error while sending Telegram message: {exc}")
            return
        except Exception as exc:
            self._events.error(f"Unexpected error while sending Telegram message: {exc!r}")
            return

        if response.status_code < 200 or response.status_code >= 300:
            self._events.error(
                f"Failed to send message to Telegram: {response.status_code}, {response.text}"
            )
            return

        self._events.info("Message sent to Telegram")
