"""Store interface consumed by the pipeline, and its Postgres implementation."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from psycopg_pool import ConnectionPool

from ..config import SourceConfig
from ..models import AggregationLog, AggregationStatus, Article, ScheduleConfig, Source
from .articles import ArticleStorage
from .connection import get_connection
from .logs import LogManager
from .settings import SettingsManager
from .sources import SourceManager


class Store(ABC):
    """Relational store behind the aggregation pipeline."""

    @abstractmethod
    def get_sources(self) -> List[Source]:
        """Get all configured sources."""
        pass

    @abstractmethod
    def existing_keys(self, pairs: Iterable[Tuple[str, str]]) -> Set[Tuple[str, str]]:
        """
        Look up stored articles by dedup identity.

        Args:
            pairs: (source, source_guid) pairs to check

        Returns:
            The subset of pairs with at least one matching row
        """
        pass

    @abstractmethod
    def insert_articles(self, articles: List[Article], overwrite: bool = False) -> List[Any]:
        """
        Insert one batch of articles.

        Returns:
            The rows actually written (may be fewer than the batch)
        """
        pass

    @abstractmethod
    def create_log(
        self,
        event_type: str,
        status: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> AggregationLog:
        """Append an aggregation log entry."""
        pass

    @abstractmethod
    def get_logs(
        self,
        status: Optional[str] = None,
        event_type: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[AggregationLog]:
        """Get log entries, newest first."""
        pass

    @abstractmethod
    def get_schedule(self) -> ScheduleConfig:
        pass

    @abstractmethod
    def save_schedule(self, schedule: ScheduleConfig) -> None:
        pass

    @abstractmethod
    def get_status(self) -> AggregationStatus:
        pass

    @abstractmethod
    def update_status(self, status: AggregationStatus) -> None:
        pass


class PostgresStore(Store):
    """Store backed by a psycopg connection pool."""

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize Postgres store.

        Args:
            pool: Open connection pool; every call borrows one connection and
                commits before returning it.
        """
        self.pool = pool
        self.sources = SourceManager()
        self.articles = ArticleStorage()
        self.logs = LogManager()
        self.settings = SettingsManager()

    def get_sources(self) -> List[Source]:
        with get_connection(self.pool) as conn:
            return self.sources.get_sources(conn)

    def add_source(self, source: SourceConfig) -> Source:
        with get_connection(self.pool) as conn:
            return self.sources.add_source(conn, source)

    def remove_source(self, name: str) -> bool:
        with get_connection(self.pool) as conn:
            return self.sources.remove_source(conn, name)

    def sync_sources(self, sources: List[SourceConfig]) -> Dict[str, int]:
        with get_connection(self.pool) as conn:
            return self.sources.sync_sources(conn, sources)

    def existing_keys(self, pairs: Iterable[Tuple[str, str]]) -> Set[Tuple[str, str]]:
        with get_connection(self.pool) as conn:
            return self.articles.existing_keys(conn, pairs)

    def insert_articles(self, articles: List[Article], overwrite: bool = False) -> List[int]:
        with get_connection(self.pool) as conn:
            return self.articles.insert_articles(conn, articles, overwrite=overwrite)

    def create_log(
        self,
        event_type: str,
        status: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> AggregationLog:
        with get_connection(self.pool) as conn:
            return self.logs.create_log(conn, event_type, status, details)

    def get_logs(
        self,
        status: Optional[str] = None,
        event_type: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[AggregationLog]:
        with get_connection(self.pool) as conn:
            return self.logs.get_logs(conn, status, event_type, limit, offset)

    def get_schedule(self) -> ScheduleConfig:
        with get_connection(self.pool) as conn:
            return self.settings.get_schedule(conn)

    def save_schedule(self, schedule: ScheduleConfig) -> None:
        with get_connection(self.pool) as conn:
            self.settings.save_schedule(conn, schedule)

    def get_status(self) -> AggregationStatus:
        with get_connection(self.pool) as conn:
            return self.settings.get_status(conn)

    def update_status(self, status: AggregationStatus) -> None:
        with get_connection(self.pool) as conn:
            self.settings.update_status(conn, status)

    def close(self) -> None:
        """Close the underlying pool."""
        self.pool.close()
