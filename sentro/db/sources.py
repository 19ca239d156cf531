"""Source management in database."""

from typing import Dict, List

from psycopg import Connection

from ..config import SourceConfig
from ..models import Source


class SourceManager:
    """Manage sources in database."""

    def get_sources(self, conn: Connection) -> List[Source]:
        """Get all sources ordered by name."""
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT id, name, url, type, article_limit, created_at, updated_at
                FROM sources
                ORDER BY name
                """
            )
            return [Source(**row) for row in cur.fetchall()]

    def add_source(self, conn: Connection, source: SourceConfig) -> Source:
        """Insert a new source."""
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO sources (name, url, type, article_limit)
                VALUES (%s, %s, %s, %s)
                RETURNING id, name, url, type, article_limit, created_at, updated_at
                """,
                (source.name, source.url, source.type, source.article_limit),
            )
            return Source(**cur.fetchone())

    def remove_source(self, conn: Connection, name: str) -> bool:
        """Delete a source by name. Returns whether a row was deleted."""
        with conn.cursor() as cur:
            cur.execute("DELETE FROM sources WHERE name = %s", (name,))
            return cur.rowcount > 0

    def sync_sources(
        self,
        conn: Connection,
        sources: List[SourceConfig],
    ) -> Dict[str, int]:
        """
        Sync sources from sources.yaml to database.

        Returns:
            Mapping of source name to database ID
        """
        source_map = {}

        with conn.cursor() as cur:
            for source in sources:
                cur.execute(
                    """
                    INSERT INTO sources (name, url, type, article_limit)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (name) DO UPDATE SET
                        url = EXCLUDED.url,
                        type = EXCLUDED.type,
                        article_limit = EXCLUDED.article_limit,
                        updated_at = CURRENT_TIMESTAMP
                    RETURNING id
                    """,
                    (source.name, source.url, source.type, source.article_limit),
                )
                source_map[source.name] = cur.fetchone()["id"]

        return source_map
