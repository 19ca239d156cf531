"""Feed fetching and normalization."""

from .errors import ErrorKind, FeedParseError, FetchError, IngestionError
from .fetcher import FeedFetcher, backoff_delay
from .models import SourceResult
from .normalizer import FeedNormalizer

__all__ = [
    "ErrorKind",
    "FeedFetcher",
    "FeedNormalizer",
    "FeedParseError",
    "FetchError",
    "IngestionError",
    "SourceResult",
    "backoff_delay",
]
