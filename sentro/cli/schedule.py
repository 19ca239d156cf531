"""Schedule management commands."""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..pipeline import AggregationOrchestrator, Scheduler
from ..pipeline.scheduler import FREQUENCY_INTERVALS
from .common import load_app_config, open_store

console = Console()
schedule_app = typer.Typer(help="Manage the aggregation schedule")


@schedule_app.command("show")
def schedule_show() -> None:
    """Show the current schedule."""
    config = load_app_config()

    with open_store(config) as store:
        schedule = store.get_schedule()

    table = Table(title="Aggregation Schedule")
    table.add_column("Enabled", style="yellow")
    table.add_column("Frequency", style="cyan")
    table.add_column("Next Scheduled", style="green")
    table.add_row(
        "✓" if schedule.enabled else "✗",
        schedule.frequency,
        schedule.next_scheduled.isoformat() if schedule.next_scheduled else "-",
    )
    console.print(table)


@schedule_app.command("set")
def schedule_set(
    frequency: Optional[str] = typer.Option(
        None,
        "--frequency",
        "-f",
        help=f"Run interval ({', '.join(FREQUENCY_INTERVALS)})",
    ),
    enabled: Optional[bool] = typer.Option(
        None,
        "--enable/--disable",
        help="Enable or disable scheduled runs",
    ),
) -> None:
    """Save schedule settings."""
    if frequency is not None and frequency not in FREQUENCY_INTERVALS:
        console.print(
            f"[red]Unknown frequency '{frequency}'. "
            f"Choose one of: {', '.join(FREQUENCY_INTERVALS)}[/red]"
        )
        raise typer.Exit(1)

    config = load_app_config()

    with open_store(config) as store:
        current = store.get_schedule()
        orchestrator = AggregationOrchestrator(store, settings=config.config.aggregation)
        schedule = Scheduler(store, orchestrator).save_schedule(
            current.enabled if enabled is None else enabled,
            frequency or current.frequency,
        )

    console.print(
        f"[green]✅ Schedule saved: {'enabled' if schedule.enabled else 'disabled'}, "
        f"every {schedule.frequency}, next run {schedule.next_scheduled.isoformat()}[/green]"
    )


@schedule_app.command("tick")
def schedule_tick(
    force: bool = typer.Option(
        False,
        "--force",
        help="Run now, ignoring next_scheduled and the rate limit cooldown",
    ),
) -> None:
    """Run a scheduled aggregation if one is due (call from cron)."""
    config = load_app_config()

    with open_store(config) as store:
        orchestrator = AggregationOrchestrator(store, settings=config.config.aggregation)
        try:
            result = Scheduler(store, orchestrator).check_and_run_sync(force=force)
        except Exception as e:
            console.print(f"[red]Scheduled aggregation failed: {e}[/red]")
            raise typer.Exit(1)

    status = result.get("status")
    if status == "skipped":
        console.print(f"[yellow]⏭️  {result.get('message')}[/yellow]")
    elif status == "error":
        console.print(f"[red]❌ {result.get('message')}[/red]")
        raise typer.Exit(1)
    else:
        console.print(
            f"[green]✅ {result.get('message')} "
            f"({result.get('totalCount', 0)} articles)[/green]"
        )
