"""Timing and stats of the stages of one aggregation run."""

import time
from typing import Any, Dict, List, Optional

STAGE_NAMES = (
    ("sources", "Loading sources"),
    ("fetch", "Fetching and normalizing feeds"),
    ("dedup", "Deduplicating articles"),
    ("persist", "Inserting new articles"),
)


class PipelineStage:
    """One stage of a run."""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.error: Optional[str] = None
        self.stats: Dict[str, Any] = {}

    @property
    def started(self) -> bool:
        return self.start_time is not None

    @property
    def running(self) -> bool:
        return self.started and self.end_time is None

    def start(self):
        self.start_time = time.monotonic()

    def complete(self, stats: Optional[Dict[str, Any]] = None):
        self.end_time = time.monotonic()
        if stats:
            self.stats.update(stats)

    def fail(self, error: str):
        self.end_time = time.monotonic()
        self.error = error

    def summary(self) -> Dict[str, Any]:
        """Stats recorded in the terminal log entry."""
        duration = (self.end_time - self.start_time) if self.end_time and self.started else 0.0
        return {
            "duration": round(duration, 3),
            "success": self.end_time is not None and self.error is None,
            "error": self.error,
            "stats": self.stats,
        }


def new_stages() -> List[PipelineStage]:
    """Fresh stages for a single run."""
    return [PipelineStage(name, description) for name, description in STAGE_NAMES]


def stage_stats(stages: List[PipelineStage]) -> Dict[str, Any]:
    """Summaries of the stages a run reached."""
    return {stage.name: stage.summary() for stage in stages if stage.started}
