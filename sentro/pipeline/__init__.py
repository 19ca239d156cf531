"""Aggregation pipeline."""

from .dedup import DedupResult, Deduplicator
from .orchestrator import AggregationOrchestrator, RunOptions, RunSummary, SourceConfigError
from .persister import BatchPersister, PersistResult
from .run_logger import RunLogger
from .scheduler import Scheduler, calculate_next_run

__all__ = [
    "AggregationOrchestrator",
    "BatchPersister",
    "DedupResult",
    "Deduplicator",
    "PersistResult",
    "RunLogger",
    "RunOptions",
    "RunSummary",
    "Scheduler",
    "SourceConfigError",
    "calculate_next_run",
]
