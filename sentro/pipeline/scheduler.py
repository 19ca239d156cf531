"""Scheduled aggregation: schedule guard, cooldown guard and schedule edits."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

import pendulum

from ..db.store import Store
from ..models import ScheduleConfig
from ..models.log import CRYPTO_AGGREGATION, SCHEDULE_UPDATE, SCHEDULED_AGGREGATION
from .orchestrator import AggregationOrchestrator, RunOptions
from .run_logger import RunLogger

logger = logging.getLogger(__name__)

FREQUENCY_INTERVALS = {
    "15min": timedelta(minutes=15),
    "30min": timedelta(minutes=30),
    "1hour": timedelta(hours=1),
    "3hours": timedelta(hours=3),
    "6hours": timedelta(hours=6),
    "12hours": timedelta(hours=12),
    "24hours": timedelta(hours=24),
}
DEFAULT_INTERVAL = FREQUENCY_INTERVALS["15min"]


def calculate_next_run(frequency: Optional[str], now: datetime) -> datetime:
    """Next run time for ``frequency``; unknown values mean every 15 minutes."""
    return now + FREQUENCY_INTERVALS.get(frequency or "", DEFAULT_INTERVAL)


class Scheduler:
    """Decides whether an aggregation run may start, and runs it."""

    def __init__(
        self,
        store: Store,
        orchestrator: AggregationOrchestrator,
        now: Callable[[], datetime] = lambda: pendulum.now("UTC"),
    ) -> None:
        self.store = store
        self.orchestrator = orchestrator
        self.now = now
        self.run_logger = RunLogger(store)

    def cooldown_until(self) -> Optional[datetime]:
        """End of the active rate-limit cooldown, or None."""
        status = self.store.get_status()
        if status.cooldown_until and self.now() < status.cooldown_until:
            return status.cooldown_until
        return None

    def guard_manual_run(self, event_type: str) -> Optional[Dict[str, Any]]:
        """
        Check the cooldown before a manually triggered run.

        Returns:
            A skip response (after logging ``skipped``), or None when the run may proceed
        """
        until = self.cooldown_until()
        if until is None:
            return None

        reason = "Rate limit cooldown active"
        logger.warning("%s until %s; skipping %s", reason, until.isoformat(), event_type)
        self.run_logger.skipped(
            event_type,
            {
                "reason": reason,
                "cooldown_until": until.isoformat(),
                "timestamp": self.now().isoformat(),
            },
        )
        return {
            "status": "skipped",
            "reason": reason,
            "message": f"{reason}. Try again after {until.isoformat()}",
            "cooldown_until": until.isoformat(),
        }

    def save_schedule(self, enabled: bool, frequency: str) -> ScheduleConfig:
        """Persist schedule settings with a freshly computed next run."""
        schedule = ScheduleConfig(
            enabled=enabled,
            frequency=frequency,
            next_scheduled=calculate_next_run(frequency, self.now()),
        )
        self.store.save_schedule(schedule)
        self.run_logger.create_log(
            SCHEDULE_UPDATE,
            "success",
            {
                "frequency": schedule.frequency,
                "enabled": schedule.enabled,
                "next_scheduled": schedule.next_scheduled.isoformat(),
            },
        )
        return schedule

    def _advance(self, schedule: ScheduleConfig) -> datetime:
        next_run = calculate_next_run(schedule.frequency, self.now())
        self.store.save_schedule(
            ScheduleConfig(
                enabled=schedule.enabled,
                frequency=schedule.frequency,
                next_scheduled=next_run,
            )
        )
        return next_run

    async def check_and_run(self, force: bool = False) -> Dict[str, Any]:
        """
        Run a scheduled aggregation if the schedule allows it.

        A failure of the check itself is logged as ``error`` and re-raised.

        Args:
            force: Ignore next_scheduled and the cooldown (not a disabled schedule)
        """
        try:
            return await self._check_and_run(force)
        except Exception as e:
            logger.error("Error in scheduled aggregation: %s", e)
            self.run_logger.create_log(
                SCHEDULED_AGGREGATION,
                "error",
                {"error": str(e) or "Unknown error", "timestamp": self.now().isoformat()},
            )
            raise

    async def _check_and_run(self, force: bool) -> Dict[str, Any]:
        now = self.now()
        schedule = self.store.get_schedule()

        if not schedule.enabled:
            logger.info("Scheduled aggregation is disabled")
            next_run = self._advance(schedule)
            self.run_logger.skipped(
                SCHEDULED_AGGREGATION,
                {"reason": "Scheduled aggregation is disabled", "timestamp": now.isoformat()},
            )
            return {
                "status": "skipped",
                "message": "Scheduled aggregation is disabled",
                "next_scheduled": next_run.isoformat(),
            }

        if not force and schedule.next_scheduled and now < schedule.next_scheduled:
            logger.info("Not time for scheduled aggregation yet")
            return {
                "status": "skipped",
                "reason": "Not time for scheduled aggregation yet",
                "message": "Not time for scheduled aggregation yet",
                "current_time": now.isoformat(),
                "next_scheduled": schedule.next_scheduled.isoformat(),
            }

        if not force:
            skip = self.guard_manual_run(SCHEDULED_AGGREGATION)
            if skip is not None:
                return skip

        self.run_logger.running(
            SCHEDULED_AGGREGATION,
            {"message": "Starting scheduled aggregation", "timestamp": now.isoformat()},
        )

        count = 0
        errors = None
        status = "success"
        try:
            summary = await self.orchestrator.run(
                RunOptions(scheduled=True), event_type=CRYPTO_AGGREGATION
            )
            count = summary.count
            errors = summary.errors
            status = "partial_success" if summary.status == "partial_success" else "success"
        except Exception as e:
            logger.error("Exception in scheduled crypto news aggregation: %s", e)
            errors = [{"source": "crypto", "error": str(e) or "Unknown error"}]
            status = "error"

        self.run_logger.create_log(
            SCHEDULED_AGGREGATION,
            status,
            {
                "cryptoNewsCount": count,
                "totalCount": count,
                "errors": errors,
                "timestamp": self.now().isoformat(),
            },
        )
        next_run = self._advance(schedule)

        return {
            "status": status,
            "message": (
                "Scheduled aggregation completed successfully"
                if status != "error"
                else "Scheduled aggregation failed"
            ),
            "totalCount": count,
            "errors": errors,
            "next_scheduled": next_run.isoformat(),
        }

    def check_and_run_sync(self, force: bool = False) -> Dict[str, Any]:
        """Synchronous wrapper for check_and_run."""
        return asyncio.run(self.check_and_run(force=force))
