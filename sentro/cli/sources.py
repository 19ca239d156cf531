"""Sources management commands."""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import SourceConfig, load_sources
from ..ingestion import FeedFetcher, FeedNormalizer, IngestionError
from ..models.source import SOURCE_TYPES
from .common import load_app_config, open_store

console = Console()
sources_app = typer.Typer(help="Manage news sources")


@sources_app.command("list")
def sources_list() -> None:
    """List all sources stored in the database."""
    config = load_app_config()

    with open_store(config) as store:
        sources = store.get_sources()

    if not sources:
        console.print("[yellow]No sources configured.[/yellow]")
        return

    table = Table(title="Configured Sources")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Limit", style="green", justify="right")
    table.add_column("URL", style="blue")

    for source in sources:
        table.add_row(str(source.id), source.name, source.type, str(source.article_limit), source.url)

    console.print(table)


@sources_app.command("add")
def sources_add(
    name: str = typer.Option(..., "--name", "-n", help="Source name"),
    url: str = typer.Option(..., "--url", "-u", help="Feed URL"),
    source_type: str = typer.Option("rss", "--type", "-t", help="Source type (rss, api, html)"),
    article_limit: int = typer.Option(10, "--limit", "-l", help="Max items per run", min=1),
) -> None:
    """Add a new source."""
    if source_type not in SOURCE_TYPES:
        console.print(f"[red]Unknown source type '{source_type}'.[/red]")
        raise typer.Exit(1)

    config = load_app_config()

    with open_store(config) as store:
        if any(s.name == name or s.url == url for s in store.get_sources()):
            console.print(f"[red]Source '{name}' or URL already exists.[/red]")
            raise typer.Exit(1)

        store.add_source(
            SourceConfig(name=name, url=url, type=source_type, article_limit=article_limit)
        )

    console.print(f"[green]✅ Added source: {name}[/green]")


@sources_app.command("remove")
def sources_remove(
    name: str = typer.Argument(..., help="Source name to remove"),
) -> None:
    """Remove a source."""
    config = load_app_config()

    with open_store(config) as store:
        removed = store.remove_source(name)

    if not removed:
        console.print(f"[red]Source '{name}' not found.[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✅ Removed source: {name}[/green]")


@sources_app.command("sync")
def sources_sync() -> None:
    """Load sources.yaml into the database (insert or update by name)."""
    config = load_app_config()

    try:
        sources = load_sources(config.sources_path)
    except FileNotFoundError:
        console.print("[red]Sources file not found. Run 'sentro init' first.[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    with open_store(config) as store:
        synced = store.sync_sources(sources)

    console.print(f"[green]✅ Synced {len(synced)} sources from {config.sources_path}[/green]")


@sources_app.command("test")
def sources_test(
    name: Optional[str] = typer.Argument(None, help="Source name to test (or test all)"),
) -> None:
    """Fetch and parse feeds without storing anything."""
    config = load_app_config()

    with open_store(config) as store:
        sources = store.get_sources()

    if name:
        sources = [s for s in sources if s.name == name]
        if not sources:
            console.print(f"[red]Source '{name}' not found.[/red]")
            raise typer.Exit(1)

    fetcher = FeedFetcher.from_settings(config.config.aggregation, max_retries=0)
    normalizer = FeedNormalizer()

    for source in sources:
        if not normalizer.supports(source):
            console.print(f"[yellow]⚠️  {source.name}: {source.type} sources are not supported[/yellow]")
            continue

        try:
            body = fetcher.fetch_sync(source)
            articles = normalizer.normalize(source, body)
            console.print(f"[green]✅ {source.name}: OK ({len(articles)} articles)[/green]")
        except IngestionError as e:
            console.print(f"[red]❌ {source.name}: Failed - {e}[/red]")
