"""Database connection management."""

import os
from contextlib import contextmanager
from typing import Any, Dict, Generator

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool


class DatabaseConfig:
    """Database configuration."""

    def __init__(self, config: Dict[str, Any]) -> None:
        """Initialize database config from dict."""
        self.host = config.get("host", "localhost")
        self.port = config.get("port", 5432)
        self.database = config.get("database", "sentro")
        self.user = config.get("user", "sentro")

        # Handle password from environment variable if specified
        password_env = config.get("password_env")
        if password_env and os.environ.get(password_env):
            self.password = os.environ[password_env]
        else:
            self.password = config.get("password") or ""

    @property
    def connection_string(self) -> str:
        """Get psycopg connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


def create_connection_pool(
    config: Dict[str, Any],
    min_size: int = 1,
    max_size: int = 10,
) -> ConnectionPool:
    """Create a connection pool; the caller owns it and must close it."""
    db_config = DatabaseConfig(config)
    return ConnectionPool(
        db_config.connection_string,
        min_size=min_size,
        max_size=max_size,
        kwargs={"row_factory": dict_row},
        open=True,
    )


@contextmanager
def get_connection(pool: ConnectionPool) -> Generator[psycopg.Connection, None, None]:
    """Borrow a connection; commits on success, rolls back on error."""
    with pool.connection() as conn:
        yield conn
