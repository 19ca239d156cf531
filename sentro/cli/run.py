"""Run command implementation."""

import signal
import threading
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..models.log import AGGREGATION, CRYPTO_AGGREGATION
from ..pipeline import AggregationOrchestrator, RunOptions, RunSummary, Scheduler
from .common import load_app_config, open_store

console = Console()


def display_summary(summary: RunSummary) -> None:
    """Display run outcome."""
    style = {"success": "green", "partial_success": "yellow"}.get(summary.status, "red")
    console.print(f"\n[bold {style}]{summary.message}[/bold {style}]")
    console.print(f"Articles inserted: [bold]{summary.count}[/bold]")

    if summary.sources:
        table = Table(title="New Articles by Source")
        table.add_column("Source", style="cyan")
        table.add_column("New", style="green", justify="right")
        for name, count in sorted(summary.sources.items()):
            table.add_row(name, str(count))
        console.print(table)

    if summary.errors:
        table = Table(title="Errors")
        table.add_column("Where", style="magenta")
        table.add_column("Error", style="red")
        for error in summary.errors:
            where = error.get("source") or f"batch {error.get('batch')}"
            table.add_row(str(where), str(error.get("error")))
        console.print(table)


def run_command(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Re-write articles that are already stored",
    ),
    single_category: bool = typer.Option(
        False,
        "--single-category",
        help="Fetch one randomly chosen source",
    ),
    crypto: bool = typer.Option(
        True,
        "--crypto/--general",
        help="Log the run as a crypto or a general aggregation",
    ),
    categories: Optional[List[str]] = typer.Option(
        None,
        "--category",
        help="Keep only articles in this category (repeatable)",
    ),
) -> None:
    """Run one aggregation pass over every configured source."""
    config = load_app_config()
    event_type = CRYPTO_AGGREGATION if crypto else AGGREGATION
    options = RunOptions(
        force_update=force,
        single_category=single_category,
        categories=categories or None,
    )
    cancel = threading.Event()

    with open_store(config) as store:
        orchestrator = AggregationOrchestrator(store, settings=config.config.aggregation)
        skip = Scheduler(store, orchestrator).guard_manual_run(event_type)
        if skip is not None:
            console.print(f"[yellow]⚠️  {skip['message']}[/yellow]")
            return

        def request_cancel(signum, frame):
            console.print("\n[yellow]Cancelling after the current source or batch...[/yellow]")
            cancel.set()

        # Ctrl-C stops new fetches and batches; the run still logs its outcome
        previous_handler = signal.signal(signal.SIGINT, request_cancel)
        try:
            with console.status("[bold green]Aggregating news..."):
                summary = orchestrator.run_sync(options, event_type=event_type, cancel=cancel)
        except Exception as e:
            console.print(f"[red]Aggregation failed: {e}[/red]")
            raise typer.Exit(1)
        finally:
            signal.signal(signal.SIGINT, previous_handler)

    display_summary(summary)
    if cancel.is_set():
        console.print("[yellow]Aggregation interrupted by user[/yellow]")
        raise typer.Exit(1)
