"""Main CLI application."""

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from .init import init_command
from .run import run_command
from .schedule import schedule_app
from .serve import serve_command
from .sources import sources_app
from .status import logs_command, status_command

app = typer.Typer(
    name="sentro",
    help="Sentro - News Aggregation and Deduplication Pipeline",
    no_args_is_help=True,
)

# Register commands
app.command("init")(init_command)
app.command("run")(run_command)
app.command("serve")(serve_command)
app.command("status")(status_command)
app.command("logs")(logs_command)
app.add_typer(schedule_app, name="schedule", help="Manage the aggregation schedule")
app.add_typer(sources_app, name="sources", help="Manage news sources")


if __name__ == "__main__":
    app()
