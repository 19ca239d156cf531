"""Feed fetcher with bounded retries and exponential backoff."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

from ..config import AggregationSettings
from ..models import Source
from .errors import ErrorKind, FetchError

logger = logging.getLogger(__name__)


def backoff_delay(base_delay: float, retry_count: int, max_delay: float = 10.0) -> float:
    """Delay before retry number ``retry_count``: base * 2**retry_count, capped."""
    return min(base_delay * (2 ** retry_count), max_delay)


def classify_error(error: httpx.HTTPError) -> FetchError:
    """Convert an httpx error into a typed FetchError."""
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        if status == 429:
            return FetchError(f"Rate limited (HTTP {status})", ErrorKind.RATE_LIMITED, status)
        if status >= 500:
            return FetchError(f"Server error (HTTP {status})", ErrorKind.TRANSIENT, status)
        return FetchError(f"HTTP error! Status: {status}", ErrorKind.FATAL, status)
    if isinstance(error, httpx.TimeoutException):
        return FetchError("Request timed out", ErrorKind.TRANSIENT)
    return FetchError(f"HTTP error: {error}", ErrorKind.TRANSIENT)


class FeedFetcher:
    """Fetch raw feed bodies over HTTP."""

    def __init__(
        self,
        timeout: float = 30.0,
        max_retries: int = 2,
        base_delay: float = 2.0,
        max_delay: float = 10.0,
        user_agent: str = "Sentro/1.0 (news aggregator)",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize feed fetcher.

        Args:
            timeout: Per-request timeout in seconds
            max_retries: Additional attempts after the first failure
            base_delay: Backoff base delay in seconds
            max_delay: Backoff delay cap in seconds
            user_agent: User-Agent header sent with every request
            transport: Optional httpx transport (used to mock HTTP in tests)
            sleep: Coroutine used to wait between attempts
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.user_agent = user_agent
        self.transport = transport
        self.sleep = sleep

    @classmethod
    def from_settings(cls, settings: AggregationSettings, **kwargs) -> "FeedFetcher":
        """Build a fetcher from the aggregation config section; kwargs override it."""
        options = {
            "timeout": settings.timeout,
            "max_retries": settings.max_retries,
            "base_delay": settings.base_retry_delay,
            "max_delay": settings.max_retry_delay,
            "user_agent": settings.user_agent,
        }
        options.update(kwargs)
        return cls(**options)

    async def fetch(self, source: Source) -> str:
        """
        Fetch the body of ``source.url``.

        Raises:
            FetchError: when every attempt failed; ``kind`` reflects the last failure
        """
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/rss+xml, application/atom+xml, application/xml, text/xml, */*",
        }
        retries = 0

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers=headers,
            transport=self.transport,
        ) as client:
            while True:
                try:
                    logger.debug("Fetching %s: %s", source.name, source.url)
                    response = await client.get(source.url)
                    response.raise_for_status()
                    return response.text
                except httpx.HTTPError as e:
                    error = classify_error(e)
                    error.attempts = retries + 1
                    logger.warning(
                        "Error fetching %s (attempt %d/%d): %s",
                        source.name,
                        retries + 1,
                        self.max_retries + 1,
                        error,
                    )
                    if retries >= self.max_retries:
                        raise error from e

                retries += 1
                await self.sleep(backoff_delay(self.base_delay, retries, self.max_delay))

    def fetch_sync(self, source: Source) -> str:
        """Synchronous wrapper for fetch."""
        return asyncio.run(self.fetch(source))
