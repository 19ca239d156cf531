"""Init command implementation."""

from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import Config, ConfigModel, SourceConfig, save_config, save_sources
from ..db import create_connection_pool, init_database, validate_connection

console = Console()


def create_default_sources() -> List[SourceConfig]:
    """Create default crypto news sources."""
    return [
        SourceConfig(name="CoinDesk", url="https://www.coindesk.com/arc/outboundfeeds/rss/"),
        SourceConfig(name="Cointelegraph", url="https://cointelegraph.com/rss"),
        SourceConfig(name="Decrypt", url="https://decrypt.co/feed"),
        SourceConfig(name="The Block", url="https://www.theblock.co/rss.xml"),
        SourceConfig(name="Bitcoin Magazine", url="https://bitcoinmagazine.com/.rss/full/"),
    ]


def init_command(
    config_dir: Path = typer.Option(
        Path.home() / ".config" / "sentro",
        "--config-dir",
        "-c",
        help="Configuration directory",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("sentro", "--db-name", help="Database name"),
    db_user: str = typer.Option("sentro", "--db-user", help="Database user"),
    seed_sources: bool = typer.Option(
        True,
        "--seed-sources/--no-seed-sources",
        help="Seed default crypto news sources",
    ),
) -> None:
    """Initialize Sentro configuration and database."""
    console.print(Panel.fit("📰 Sentro - Initialization", style="bold blue"))

    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / "config.yaml"
    sources_path = config_dir / "sources.yaml"

    config = ConfigModel(
        postgres={
            "host": db_host,
            "port": db_port,
            "database": db_name,
            "user": db_user,
            "password_env": "SENTRO_DB_PASSWORD",
        },
    )

    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    sources = create_default_sources() if seed_sources else []
    save_sources(sources, sources_path)
    if sources:
        console.print(f"✅ Created sources: {sources_path} (seeded with {len(sources)} sources)")
    else:
        console.print(f"✅ Created sources: {sources_path} (empty)")

    console.print("\n[bold]Testing database connection...[/bold]")
    db_config = Config(config_path).get_db_config()
    pool = create_connection_pool(db_config, max_size=1)

    try:
        if not validate_connection(pool):
            console.print(
                "[red]❌ Database connection failed![/red]\n"
                "Please ensure Postgres is running and credentials are correct.\n"
                "Set the password via environment variable: "
                "[bold]export SENTRO_DB_PASSWORD=your_password[/bold]"
            )
            raise typer.Exit(1)
        console.print("✅ Database connection successful")

        console.print("\n[bold]Initializing database schema...[/bold]")
        try:
            init_database(pool)
            console.print("✅ Database schema initialized")
        except Exception as e:
            console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
            raise typer.Exit(1)
    finally:
        pool.close()

    console.print(
        Panel(
            f"[green]✅ Sentro initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n"
            f"Sources: {sources_path}\n\n"
            f"Next steps:\n"
            f"1. Set database password: [bold]export SENTRO_DB_PASSWORD=your_password[/bold]\n"
            f"2. Load sources into the database: [bold]sentro sources sync[/bold]\n"
            f"3. Run: [bold]sentro run[/bold]",
            style="green",
        )
    )
