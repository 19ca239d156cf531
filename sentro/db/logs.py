"""Aggregation log storage."""

from typing import Any, Dict, List, Optional

from psycopg import Connection
from psycopg.types.json import Jsonb

from ..models import AggregationLog


class LogManager:
    """Append and query aggregation log entries."""

    def create_log(
        self,
        conn: Connection,
        event_type: str,
        status: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> AggregationLog:
        """Append a log entry."""
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO aggregation_logs (event_type, status, details)
                VALUES (%s, %s, %s)
                RETURNING id, event_type, status, details, created_at
                """,
                (event_type, status, Jsonb(details) if details is not None else None),
            )
            return AggregationLog(**cur.fetchone())

    def get_logs(
        self,
        conn: Connection,
        status: Optional[str] = None,
        event_type: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[AggregationLog]:
        """Get log entries, newest first."""
        query = "SELECT id, event_type, status, details, created_at FROM aggregation_logs"
        conditions = []
        params: List[Any] = []

        if status:
            conditions.append("status = %s")
            params.append(status)
        if event_type:
            conditions.append("event_type = %s")
            params.append(event_type)

        if conditions:
            query += " WHERE " + " AND ".join(conditions)

        query += " ORDER BY created_at DESC, id DESC LIMIT %s OFFSET %s"
        params.extend([limit, offset])

        with conn.cursor() as cur:
            cur.execute(query, params)
            return [AggregationLog(**row) for row in cur.fetchall()]
