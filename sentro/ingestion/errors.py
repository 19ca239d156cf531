"""Typed ingestion errors."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """How a fetch failure should be treated by callers."""

    RATE_LIMITED = "rate_limited"
    TRANSIENT = "transient"
    FATAL = "fatal"


class IngestionError(Exception):
    """Base class for per-source ingestion failures."""

    kind: ErrorKind = ErrorKind.FATAL


class FetchError(IngestionError):
    """Fetching a source failed after all retries."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.TRANSIENT,
        status_code: Optional[int] = None,
        attempts: int = 1,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.attempts = attempts


class FeedParseError(IngestionError):
    """A fetched body could not be parsed as a feed."""
