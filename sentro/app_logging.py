"""Logging setup shared by the CLI and the HTTP server."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "INFO", console: Console = None) -> logging.Logger:
    """
    Route ``sentro.*`` loggers through a rich handler.

    Args:
        level: Log level name
        console: Console to write to (stderr by default)

    Returns:
        The package logger
    """
    logger = logging.getLogger("sentro")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
