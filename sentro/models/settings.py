"""Singleton system settings: schedule and last run status."""

from datetime import datetime
from typing import Literal, Optional, get_args

from pydantic import BaseModel, Field

Frequency = Literal["15min", "30min", "1hour", "3hours", "6hours", "12hours", "24hours"]
FREQUENCIES = get_args(Frequency)
DEFAULT_FREQUENCY = "15min"


class ScheduleConfig(BaseModel):
    """Aggregation schedule, edited by administrators."""

    enabled: bool = Field(True, description="Whether scheduled runs are enabled")
    frequency: Frequency = Field("15min", description="Interval between scheduled runs")
    next_scheduled: Optional[datetime] = Field(None, description="Next scheduled run")


class AggregationStatus(BaseModel):
    """Outcome of the most recent aggregation run."""

    last_run: Optional[datetime] = Field(None, description="When the last run finished")
    status: str = Field("never_run", description="Terminal status of the last run")
    articles_count: int = Field(0, description="Articles inserted by the last run")
    error_message: Optional[str] = Field(None, description="Error summary of the last run")
    cooldown_until: Optional[datetime] = Field(
        None, description="Manual and scheduled runs are skipped until this time"
    )
