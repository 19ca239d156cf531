"""System settings singleton: schedule and aggregation status."""

import logging
from typing import Optional

from psycopg import Connection

from ..models import AggregationStatus, ScheduleConfig
from ..models.settings import DEFAULT_FREQUENCY, FREQUENCIES

logger = logging.getLogger(__name__)

SETTINGS_ID = "aggregation_status"


class SettingsManager:
    """Read and write the aggregation_status row."""

    def _get_row(self, conn: Connection) -> Optional[dict]:
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM system_settings WHERE id = %s", (SETTINGS_ID,))
            return cur.fetchone()

    def get_schedule(self, conn: Connection) -> ScheduleConfig:
        """Get the schedule, falling back to defaults when the row is missing."""
        row = self._get_row(conn)
        if row is None:
            return ScheduleConfig()

        frequency = row["frequency"]
        if frequency not in FREQUENCIES:
            logger.warning("Unknown schedule frequency %r, using %s", frequency, DEFAULT_FREQUENCY)
            frequency = DEFAULT_FREQUENCY

        return ScheduleConfig(
            enabled=row["enabled"],
            frequency=frequency,
            next_scheduled=row["next_scheduled"],
        )

    def save_schedule(self, conn: Connection, schedule: ScheduleConfig) -> None:
        """Upsert the schedule fields."""
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO system_settings (id, enabled, frequency, next_scheduled)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (id) DO UPDATE SET
                    enabled = EXCLUDED.enabled,
                    frequency = EXCLUDED.frequency,
                    next_scheduled = EXCLUDED.next_scheduled,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (SETTINGS_ID, schedule.enabled, schedule.frequency, schedule.next_scheduled),
            )

    def get_status(self, conn: Connection) -> AggregationStatus:
        """Get the last run status, falling back to never_run."""
        row = self._get_row(conn)
        if row is None:
            return AggregationStatus()
        return AggregationStatus(
            last_run=row["last_run"],
            status=row["status"],
            articles_count=row["articles_count"],
            error_message=row["error_message"],
            cooldown_until=row["cooldown_until"],
        )

    def update_status(self, conn: Connection, status: AggregationStatus) -> None:
        """Upsert the status fields."""
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO system_settings (
                    id, last_run, status, articles_count, error_message, cooldown_until
                ) VALUES (%s, %s, %s, %s, %s, %s)
                ON CONFLICT (id) DO UPDATE SET
                    last_run = EXCLUDED.last_run,
                    status = EXCLUDED.status,
                    articles_count = EXCLUDED.articles_count,
                    error_message = EXCLUDED.error_message,
                    cooldown_until = EXCLUDED.cooldown_until,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (
                    SETTINGS_ID,
                    status.last_run,
                    status.status,
                    status.articles_count,
                    status.error_message,
                    status.cooldown_until,
                ),
            )
