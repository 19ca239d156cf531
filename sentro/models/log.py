"""Aggregation log entries."""

from typing import Any, Dict, Literal, Optional

from pydantic import Field

from .base import DBModel

LogStatus = Literal["running", "success", "partial_success", "error", "skipped", "pending"]

AGGREGATION = "aggregation"
CRYPTO_AGGREGATION = "crypto_aggregation"
SCHEDULED_AGGREGATION = "scheduled_aggregation"
SCHEDULE_UPDATE = "schedule_update"


class AggregationLog(DBModel):
    """Append-only record of a pipeline or scheduler event."""

    event_type: str = Field(..., description="Event type, e.g. crypto_aggregation")
    status: LogStatus = Field(..., description="Lifecycle status")
    details: Optional[Dict[str, Any]] = Field(None, description="Structured event payload")
