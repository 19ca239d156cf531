"""Helpers shared by CLI commands."""

from contextlib import contextmanager
from typing import Generator

import typer
from rich.console import Console

from ..app_logging import setup_logging
from ..config import Config
from ..db import PostgresStore, create_connection_pool, validate_connection

console = Console()


def load_app_config() -> Config:
    """Load configuration and set up logging, exiting on a missing or invalid file."""
    config = Config()
    try:
        level = config.config.logging.level
    except FileNotFoundError:
        console.print(
            f"[red]Config file not found: {config.config_path}. Run 'sentro init' first.[/red]"
        )
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    setup_logging(level)
    return config


@contextmanager
def open_store(config: Config) -> Generator[PostgresStore, None, None]:
    """Open a pooled Postgres store for the duration of a command."""
    pool = create_connection_pool(config.get_db_config())
    if not validate_connection(pool):
        pool.close()
        console.print("[red]❌ Database connection failed![/red]")
        console.print("Please check your database configuration and ensure Postgres is running.")
        raise typer.Exit(1)

    store = PostgresStore(pool)
    try:
        yield store
    finally:
        store.close()
