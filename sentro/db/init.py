"""Database initialization and schema management."""

import logging

from psycopg.errors import DatabaseError
from psycopg_pool import ConnectionPool

from .connection import get_connection

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
-- Sources table
CREATE TABLE IF NOT EXISTS sources (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    url TEXT NOT NULL,
    type TEXT NOT NULL DEFAULT 'rss' CHECK (type IN ('rss', 'api', 'html')),
    article_limit INTEGER NOT NULL DEFAULT 10 CHECK (article_limit > 0),
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Articles table
CREATE TABLE IF NOT EXISTS articles (
    id SERIAL PRIMARY KEY,
    title TEXT NOT NULL,
    content TEXT NOT NULL DEFAULT '',
    source TEXT NOT NULL,
    url TEXT NOT NULL,
    image_url TEXT,
    published_at TIMESTAMPTZ NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    relevance_score REAL,
    category TEXT NOT NULL DEFAULT 'crypto',
    tags TEXT[],
    language TEXT NOT NULL DEFAULT 'en',
    source_id INTEGER REFERENCES sources(id) ON DELETE SET NULL,
    source_guid TEXT NOT NULL
);

-- Aggregation logs table
CREATE TABLE IF NOT EXISTS aggregation_logs (
    id SERIAL PRIMARY KEY,
    event_type TEXT NOT NULL,
    status TEXT NOT NULL CHECK (
        status IN ('running', 'success', 'partial_success', 'error', 'skipped', 'pending')
    ),
    details JSONB,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- System settings singleton
CREATE TABLE IF NOT EXISTS system_settings (
    id TEXT PRIMARY KEY,
    enabled BOOLEAN NOT NULL DEFAULT TRUE,
    frequency TEXT NOT NULL DEFAULT '15min',
    next_scheduled TIMESTAMPTZ,
    last_run TIMESTAMPTZ,
    status TEXT NOT NULL DEFAULT 'never_run',
    articles_count INTEGER NOT NULL DEFAULT 0,
    error_message TEXT,
    cooldown_until TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Create indexes
CREATE UNIQUE INDEX IF NOT EXISTS idx_articles_source_guid ON articles(source, source_guid);
CREATE INDEX IF NOT EXISTS idx_articles_published_at ON articles(published_at);
CREATE INDEX IF NOT EXISTS idx_articles_category ON articles(category);
CREATE INDEX IF NOT EXISTS idx_aggregation_logs_created_at ON aggregation_logs(created_at);
CREATE INDEX IF NOT EXISTS idx_aggregation_logs_status ON aggregation_logs(status);
CREATE INDEX IF NOT EXISTS idx_aggregation_logs_event_type ON aggregation_logs(event_type);
"""


def validate_connection(pool: ConnectionPool) -> bool:
    """Validate database connection."""
    try:
        with get_connection(pool) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 AS ok")
                result = cur.fetchone()
                return result is not None and result["ok"] == 1
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        return False


def init_database(pool: ConnectionPool) -> None:
    """Initialize database schema."""
    try:
        with get_connection(pool) as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
        logger.info("Database schema initialized successfully")
    except DatabaseError as e:
        logger.error("Failed to initialize database schema: %s", e)
        raise
