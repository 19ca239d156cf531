"""Database management for Sentro."""

from .connection import create_connection_pool, get_connection
from .init import init_database, validate_connection
from .store import PostgresStore, Store

__all__ = [
    "PostgresStore",
    "Store",
    "create_connection_pool",
    "get_connection",
    "init_database",
    "validate_connection",
]
