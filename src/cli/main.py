"""ovh-sniper CLI (Typer).

Commands:
- run: one availability pass and, on a hit, the full purchase pipeline.
- configure / show-config: manage the saved credentials/task/telegram bundle.
- catalog: list eco plan codes for a subsidiary.
- doctor: environment diagnostics.
"""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from adapters.catalog import fetch_catalog
from adapters.config_store import default_config_path, load_bundle, save_bundle
from cli import doctor
from cli.ui_components import (
    build_availability_table,
    build_catalog_table,
    build_checkout_panel,
    build_config_table,
    print_banner,
    render_event,
)
from core.config import AppSettings
from core.domain.errors import ConfigStoreError, OrderApiError
from core.domain.models import (
    ENDPOINTS,
    SUBSIDIARIES,
    ConfigBundle,
    Credentials,
    LogEvent,
    LogLevel,
    RunOutcome,
    TaskResult,
    TaskSpec,
    TelegramConfig,
)
from core.services.task_controller import TaskController

app = typer.Typer(
    name="ovh-sniper",
    no_args_is_help=True,
    help="Watch an OVH eco plan code and order it the moment it is in stock.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()


def _load_or_exit(path: Path) -> ConfigBundle:
    try:
        return load_bundle(path)
    except ConfigStoreError as exc:
        _console.print(f"[red]{exc}[/red]")
        _console.print("Run [bold]ovh-sniper configure[/bold] first.")
        raise typer.Exit(code=2) from exc


async def _drive(controller: TaskController, bundle: ConfigBundle) -> TaskResult:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, controller.stop)
    except (NotImplementedError, RuntimeError):
        # Windows event loops have no signal handlers; Ctrl-C aborts the process.
        pass
    try:
        return await controller.start(bundle.task, bundle.credentials, bundle.telegram)
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass


@app.command(name="run")
def run_task(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to the saved bundle."),
    with_options: Optional[bool] = typer.Option(
        None,
        "--with-options/--no-options",
        help="Attach the task's add-on plan codes before checkout.",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print warnings, errors and successes."),
) -> None:
    """Check availability once and, if a unit is in stock, order it."""

    settings = AppSettings()
    if with_options is not None:
        settings = settings.model_copy(update={"attach_options": with_options})
    bundle = _load_or_exit(config or default_config_path(settings))

    def show(event: LogEvent) -> None:
        if quiet and event.level is LogLevel.INFO:
            return
        _console.print(render_event(event))

    if not quiet:
        print_banner(_console)

    controller = TaskController(settings, listeners=[show])
    result = asyncio.run(_drive(controller, bundle))

    if result.records and not quiet:
        _console.print(build_availability_table(result.records, result.selection))
    if result.checkout is not None:
        _console.print(build_checkout_panel(result.checkout, result.selection))
    if result.outcome is RunOutcome.CANCELLED:
        _console.print("[yellow]Stopped.[/yellow]")

    raise typer.Exit(code=0 if result.succeeded else 1)


@app.command()
def configure(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Where to save the bundle."),
) -> None:
    """Interactive setup of credentials, task and Telegram (saved as JSON)."""

    settings = AppSettings()
    path = config or default_config_path(settings)
    current: ConfigBundle | None = None
    try:
        current = load_bundle(path)
    except ConfigStoreError:
        current = None

    creds = current.credentials if current else None
    task = current.task if current else None
    tg = current.telegram if current else TelegramConfig()

    endpoint = typer.prompt(
        f"API endpoint ({', '.join(ENDPOINTS.values())})",
        default=creds.endpoint if creds else ENDPOINTS["ovh-eu"],
    ).strip()
    app_key = typer.prompt("Application key", default=creds.app_key if creds else "").strip()
    app_secret = typer.prompt(
        "Application secret", default=creds.app_secret if creds else "", hide_input=True
    ).strip()
    consumer_key = typer.prompt(
        "Consumer key", default=creds.consumer_key if creds else "", hide_input=True
    ).strip()

    iam = typer.prompt("Task label (iam)", default=task.iam if task else "").strip()
    zone = typer.prompt(
        f"OVH subsidiary ({', '.join(SUBSIDIARIES)})", default=task.zone if task else "IE"
    ).strip().upper()
    if zone not in SUBSIDIARIES:
        raise typer.BadParameter(f"unknown subsidiary {zone!r}")
    plan_code = typer.prompt("Plan code", default=task.plan_code if task else "").strip()
    os_image = typer.prompt("OS image", default=task.os if task else "none_64.en").strip()
    duration = typer.prompt("Duration", default=task.duration if task else "P1M").strip()
    options_raw = typer.prompt(
        "Add-on plan codes (comma separated)",
        default=",".join(task.options) if task else "",
        show_default=False,
    )
    options = tuple(o.strip() for o in options_raw.split(",") if o.strip())

    tg_enabled = typer.confirm("Enable Telegram notifications?", default=tg.enabled)
    tg_token = tg.token
    tg_chat = tg.chat_id
    if tg_enabled:
        tg_token = typer.prompt("Telegram bot token", default=tg.token, hide_input=True).strip()
        tg_chat = typer.prompt("Telegram chat id", default=tg.chat_id).strip()

    if not app_key or not consumer_key or not plan_code:
        raise typer.BadParameter("application key, consumer key and plan code are required")

    bundle = ConfigBundle(
        credentials=Credentials(
            app_key=app_key, app_secret=app_secret, consumer_key=consumer_key, endpoint=endpoint
        ),
        task=TaskSpec(
            iam=iam, zone=zone, plan_code=plan_code, os=os_image, duration=duration, options=options
        ),
        telegram=TelegramConfig(token=tg_token, chat_id=tg_chat, enabled=tg_enabled),
    )
    saved = save_bundle(bundle, path)
    _console.print(f"[green]Saved configuration to:[/green] {saved}")


@app.command(name="show-config")
def show_config(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to the saved bundle."),
) -> None:
    """Print the saved bundle with secrets masked."""

    path = config or default_config_path(AppSettings())
    bundle = _load_or_exit(path)
    _console.print(build_config_table(bundle))
    _console.print(f"[dim]{path}[/dim]")


@app.command()
def catalog(
    endpoint: str = typer.Option(ENDPOINTS["ovh-eu"], "--endpoint", "-e", help="API host."),
    zone: str = typer.Option("IE", "--zone", "-z", help="OVH subsidiary."),
) -> None:
    """List eco plan codes offered to a subsidiary."""

    try:
        plans = asyncio.run(fetch_catalog(endpoint=endpoint, zone=zone, settings=AppSettings()))
    except OrderApiError as exc:
        _console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    _console.print(build_catalog_table(plans))


def run() -> None:
    """Entry point (pyproject script and `python main.py`)."""

    app()
