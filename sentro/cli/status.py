"""Status and log viewing commands."""

import json
from typing import Optional

import pendulum
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .common import load_app_config, open_store

console = Console()

STATUS_STYLES = {
    "success": "green",
    "partial_success": "yellow",
    "running": "blue",
    "skipped": "dim",
    "pending": "dim",
    "error": "red",
}


def _when(value) -> str:
    if value is None:
        return "-"
    return pendulum.instance(value).to_datetime_string()


def status_command() -> None:
    """Show the outcome of the last aggregation run and the schedule."""
    config = load_app_config()

    with open_store(config) as store:
        status = store.get_status()
        schedule = store.get_schedule()

    style = STATUS_STYLES.get(status.status, "white")
    lines = [
        f"Status: [{style}]{status.status}[/{style}]",
        f"Last run: {_when(status.last_run)}",
        f"Articles inserted: {status.articles_count}",
    ]
    if status.error_message:
        lines.append(f"Error: [red]{status.error_message}[/red]")
    if status.cooldown_until and status.cooldown_until > pendulum.now("UTC"):
        lines.append(f"Rate limit cooldown until: [yellow]{_when(status.cooldown_until)}[/yellow]")
    lines.append("")
    lines.append(f"Schedule: {'enabled' if schedule.enabled else 'disabled'} ({schedule.frequency})")
    lines.append(f"Next scheduled: {_when(schedule.next_scheduled)}")

    console.print(Panel("\n".join(lines), title="Aggregation Status", style="blue"))


def logs_command(
    status: Optional[str] = typer.Option(None, "--status", "-s", help="Filter by status"),
    event_type: Optional[str] = typer.Option(None, "--type", "-t", help="Filter by event type"),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of entries", min=1, max=1000),
    details: bool = typer.Option(False, "--details", "-d", help="Show entry details"),
) -> None:
    """List recent aggregation log entries, newest first."""
    config = load_app_config()

    with open_store(config) as store:
        logs = store.get_logs(status=status, event_type=event_type, limit=limit)

    if not logs:
        console.print("[yellow]No log entries found.[/yellow]")
        return

    table = Table(title="Aggregation Logs")
    table.add_column("Time", style="cyan")
    table.add_column("Event", style="magenta")
    table.add_column("Status")
    table.add_column("Message")

    for log in logs:
        style = STATUS_STYLES.get(log.status, "white")
        info = log.details or {}
        message = info.get("message") or info.get("error") or info.get("reason") or ""
        table.add_row(
            _when(log.created_at),
            log.event_type,
            f"[{style}]{log.status}[/{style}]",
            str(message),
        )
        if details:
            table.add_row("", "", "", json.dumps(info, indent=2, default=str))

    console.print(table)
