"""Structured run logging to the aggregation_logs table."""

import logging
from typing import Any, Dict, List, Optional

from ..db.store import Store
from ..models import AggregationLog

logger = logging.getLogger(__name__)


def terminal_status(insert_errors: Optional[List[Dict[str, Any]]], failed: bool = False) -> str:
    """Terminal log status of a run."""
    if failed:
        return "error"
    if insert_errors:
        return "partial_success"
    return "success"


class RunLogger:
    """Append lifecycle events; never lets a logging failure escape."""

    def __init__(self, store: Store) -> None:
        self.store = store

    def create_log(
        self,
        event_type: str,
        status: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[AggregationLog]:
        """Append one log entry. Returns None if the store rejected it."""
        try:
            return self.store.create_log(event_type, status, details)
        except Exception as e:
            logger.error("Error creating %s/%s log entry: %s", event_type, status, e)
            return None

    def running(self, event_type: str, details: Dict[str, Any]) -> Optional[AggregationLog]:
        return self.create_log(event_type, "running", details)

    def skipped(self, event_type: str, details: Dict[str, Any]) -> Optional[AggregationLog]:
        return self.create_log(event_type, "skipped", details)

    def finish(
        self,
        event_type: str,
        details: Dict[str, Any],
        insert_errors: Optional[List[Dict[str, Any]]] = None,
        failed: bool = False,
    ) -> Optional[AggregationLog]:
        """Append the terminal entry with a status derived from the outcome."""
        return self.create_log(event_type, terminal_status(insert_errors, failed), details)
