"""Serve command implementation."""

from typing import Optional

import typer
import uvicorn
from rich.console import Console

from ..api.app import create_app_from_config
from .common import load_app_config

console = Console()


def serve_command(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port"),
) -> None:
    """Serve the aggregation trigger endpoints over HTTP."""
    config = load_app_config()
    server = config.config.server

    host = host or server.host
    port = port or server.port

    app = create_app_from_config(config)
    console.print(f"[bold blue]Serving Sentro on http://{host}:{port}[/bold blue]")
    uvicorn.run(app, host=host, port=port, log_level=config.config.logging.level.lower())
