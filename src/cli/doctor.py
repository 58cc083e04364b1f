"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import httpx
import typer
from rich.console import Console
from rich.table import Table

from adapters.config_store import default_config_path, load_bundle
from adapters.http_client import api_base_url, build_async_client
from core.config import AppSettings
from core.domain.errors import ConfigStoreError
from core.domain.models import ConfigBundle

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except httpx.HTTPError as exc:
        return False, str(exc)


def _check_bundle(path: Path) -> tuple[ConfigBundle | None, str]:
    try:
        return load_bundle(path), str(path)
    except ConfigStoreError as exc:
        return None, str(exc)


@app.command()
def run(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to the saved bundle."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()
    path = config or default_config_path(settings)

    table = Table(title="OVH-SNIPER Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    bundle, detail = _check_bundle(path)
    table.add_row("Config bundle", "OK" if bundle else "FAIL", detail)

    if bundle is not None:
        creds = bundle.credentials
        if creds.app_key and creds.consumer_key:
            table.add_row("Credentials", "OK", creds.endpoint)
        else:
            table.add_row("Credentials", "FAIL", "application key and consumer key are required")
        if not creds.app_secret:
            table.add_row("App secret", "OPTIONAL", "Only needed by an external request signer")

        tg = bundle.telegram
        if not tg.enabled:
            table.add_row("Telegram", "OPTIONAL", "Disabled -> no notifications")
        elif tg.is_complete:
            table.add_row("Telegram", "OK", f"chat {tg.chat_id}")
        else:
            table.add_row("Telegram", "FAIL", "Enabled but token or chat id missing")

        # /auth/time is public: reachability only, no credentials involved.
        ok_http, detail_http = asyncio.run(
            _check_http(f"{api_base_url(creds.endpoint, settings)}/auth/time", settings)
        )
        table.add_row("API connectivity", "OK" if ok_http else "FAIL", detail_http)

    table.add_row("Attach options", "ON" if settings.attach_options else "OFF", "OVH_SNIPER_ATTACH_OPTIONS")

    _console.print(table)

    if bundle is None:
        _console.print("\n[yellow]Note:[/yellow] run `ovh-sniper configure` to create the bundle.")
