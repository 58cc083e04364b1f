"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from visual details.
- Lets `run`, `catalog` and `show-config` share tables and panels.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import (
    AvailabilityRecord,
    AvailabilitySelection,
    CatalogPlan,
    CheckoutResult,
    ConfigBundle,
    LogEvent,
    LogLevel,
)

_LEVEL_STYLES: dict[LogLevel, str] = {
    LogLevel.INFO: "cyan",
    LogLevel.SUCCESS: "bold green",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "bold red",
}


def print_banner(console: Console) -> None:
    """Print the welcome banner.

    Why here:
    - Avoids circular imports (main <-> doctor).
    - Lets non-interactive modes (`--quiet`) skip it.
    """

    title = Text("OVH-SNIPER", style="bold cyan")
    subtitle = Text("Availability scan • Cart • Checkout", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def render_event(event: LogEvent) -> Text:
    style = _LEVEL_STYLES.get(event.level, "white")
    stamp = event.timestamp.astimezone().strftime("%H:%M:%S")
    return Text.assemble(
        (f"[{stamp}] ", "dim"),
        (f"{event.level.value.upper():<7} ", style),
        event.message,
    )


def build_availability_table(
    records: list[AvailabilityRecord],
    selection: AvailabilitySelection | None = None,
) -> Table:
    table = Table(title="Server availability")
    table.add_column("Model", style="cyan", no_wrap=True)
    table.add_column("Datacenter", style="white")
    table.add_column("Availability", style="magenta")
    table.add_column("Selected", style="green")

    for record in records:
        for location in record.datacenters:
            picked = (
                selection is not None
                and selection.fqn == record.fqn
                and selection.datacenter == location.datacenter
            )
            state = location.availability or "-"
            table.add_row(
                record.fqn,
                location.datacenter,
                Text(state, style="green" if location.is_eligible else "dim"),
                "●" if picked else "",
            )
    return table


def build_checkout_panel(result: CheckoutResult, selection: AvailabilitySelection | None) -> Panel:
    body = Text()
    body.append("Order ID: ", style="bold")
    body.append(result.order_id_display + "\n")
    body.append("Order URL: ", style="bold")
    body.append(result.url_display)
    if selection is not None:
        body.append(f"\n\nServer: {selection.fqn}\nDatacenter: {selection.datacenter}", style="dim")
    return Panel(body, title=Text("Order", style="bold green"), border_style="green")


def build_catalog_table(plans: list[CatalogPlan]) -> Table:
    table = Table(title="Eco catalog")
    table.add_column("Plan code", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Product", style="dim")
    for plan in plans:
        table.add_row(plan.plan_code, plan.display_name, plan.product or "")
    return table


def mask_secret(value: str) -> str:
    if not value:
        return "-"
    if len(value) <= 4:
        return "****"
    return value[:2] + "…" + value[-2:]


def build_config_table(bundle: ConfigBundle) -> Table:
    table = Table(title="Saved configuration")
    table.add_column("Key", style="bright_green", no_wrap=True)
    table.add_column("Value", style="white")

    creds = bundle.credentials
    table.add_row("endpoint", creds.endpoint)
    table.add_row("app key", mask_secret(creds.app_key))
    table.add_row("app secret", mask_secret(creds.app_secret))
    table.add_row("consumer key", mask_secret(creds.consumer_key))

    task = bundle.task
    table.add_row("iam", task.iam or "-")
    table.add_row("zone", task.zone)
    table.add_row("plan code", task.plan_code)
    table.add_row("os", task.os or "-")
    table.add_row("duration", task.duration)
    table.add_row("options", ", ".join(task.options) or "-")

    tg = bundle.telegram
    table.add_row("telegram", "enabled" if tg.enabled else "disabled")
    table.add_row("telegram token", mask_secret(tg.token))
    table.add_row("telegram chat id", tg.chat_id or "-")
    return table
