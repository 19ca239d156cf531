"""Shared fixtures: an in-memory store, feed builders and a mock-HTTP orchestrator."""

import random
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

import httpx
import pendulum
import pytest

from sentro.config import AggregationSettings
from sentro.db.store import Store
from sentro.ingestion import FeedFetcher, FeedNormalizer
from sentro.models import AggregationLog, AggregationStatus, Article, ScheduleConfig, Source
from sentro.pipeline import AggregationOrchestrator

FIXED_NOW = pendulum.datetime(2025, 1, 6, 12, 0, tz="UTC")


async def no_sleep(delay: float) -> None:
    return None


class FakeStore(Store):
    """In-memory Store with failure injection."""

    def __init__(self, sources: Optional[List[Source]] = None) -> None:
        self.sources = list(sources or [])
        self.articles: Dict[Tuple[str, str], Article] = {}
        self.logs: List[AggregationLog] = []
        self.schedule = ScheduleConfig()
        self.status = AggregationStatus()
        self.fail_batches: Set[int] = set()
        self.insert_calls = 0
        self.sources_error: Optional[Exception] = None
        self.log_error: Optional[Exception] = None

    def get_sources(self) -> List[Source]:
        if self.sources_error is not None:
            raise self.sources_error
        return list(self.sources)

    def existing_keys(self, pairs: Iterable[Tuple[str, str]]) -> Set[Tuple[str, str]]:
        return {pair for pair in pairs if pair in self.articles}

    def insert_articles(self, articles: List[Article], overwrite: bool = False) -> List[Any]:
        index = self.insert_calls
        self.insert_calls += 1
        if index in self.fail_batches:
            raise RuntimeError(f"insert failed for batch {index}")

        written = []
        for article in articles:
            if article.identity in self.articles and not overwrite:
                continue
            self.articles[article.identity] = article
            written.append({"id": len(self.articles)})
        return written

    def create_log(self, event_type, status, details=None) -> AggregationLog:
        if self.log_error is not None:
            raise self.log_error
        log = AggregationLog(
            id=len(self.logs) + 1,
            event_type=event_type,
            status=status,
            details=details,
            created_at=pendulum.now("UTC"),
        )
        self.logs.append(log)
        return log

    def get_logs(self, status=None, event_type=None, limit=100, offset=0) -> List[AggregationLog]:
        logs = [
            log
            for log in reversed(self.logs)
            if (status is None or log.status == status)
            and (event_type is None or log.event_type == event_type)
        ]
        return logs[offset : offset + limit]

    def get_schedule(self) -> ScheduleConfig:
        return self.schedule

    def save_schedule(self, schedule: ScheduleConfig) -> None:
        self.schedule = schedule

    def get_status(self) -> AggregationStatus:
        return self.status

    def update_status(self, status: AggregationStatus) -> None:
        self.status = status

    def statuses(self, event_type: Optional[str] = None) -> List[str]:
        """Log statuses in insertion order."""
        return [log.status for log in self.logs if event_type is None or log.event_type == event_type]


def rss_item(
    title: str,
    link: str,
    guid: Optional[str] = None,
    description: str = "Summary",
    pub_date: Optional[str] = "Mon, 06 Jan 2025 10:00:00 GMT",
    categories: Iterable[str] = (),
    extra: str = "",
) -> str:
    parts = [f"<title>{title}</title>"]
    if link:
        parts.append(f"<link>{link}</link>")
    if guid:
        parts.append(f'<guid isPermaLink="false">{guid}</guid>')
    if description:
        parts.append(f"<description>{description}</description>")
    if pub_date:
        parts.append(f"<pubDate>{pub_date}</pubDate>")
    parts.extend(f"<category>{c}</category>" for c in categories)
    parts.append(extra)
    return "<item>" + "".join(parts) + "</item>"


def rss_feed(*items: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/" '
        'xmlns:media="http://search.yahoo.com/mrss/">'
        "<channel><title>Test Feed</title><link>https://example.com</link>"
        "<description>Test</description>" + "".join(items) + "</channel></rss>"
    )


def simple_feed(prefix: str, count: int) -> str:
    """A feed of ``count`` distinct items."""
    return rss_feed(
        *(
            rss_item(f"{prefix} story {i}", f"https://{prefix}.example.com/{i}", guid=f"{prefix}-{i}")
            for i in range(count)
        )
    )


class MockFeeds:
    """URL -> (status, body) routes served through httpx.MockTransport."""

    def __init__(self, routes: Optional[Dict[str, Tuple[int, str]]] = None) -> None:
        self.routes = dict(routes or {})
        self.requests: List[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        status, body = self.routes.get(url, (404, "not found"))
        return httpx.Response(status, text=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def settings() -> AggregationSettings:
    return AggregationSettings(
        source_delay=0,
        batch_delay=0,
        base_retry_delay=0,
        max_retry_delay=0,
    )


@pytest.fixture
def make_source():
    def _make(name: str, url: Optional[str] = None, **kwargs) -> Source:
        return Source(name=name, url=url or f"https://{name.lower()}.example.com/feed", **kwargs)

    return _make


@pytest.fixture
def make_article():
    def _make(i: int, source: str = "Alpha", **kwargs) -> Article:
        fields = {
            "title": f"Story {i}",
            "source": source,
            "url": f"https://{source.lower()}.example.com/{i}",
            "published_at": FIXED_NOW,
            "source_guid": f"{source}-{i}",
        }
        fields.update(kwargs)
        return Article(**fields)

    return _make


@pytest.fixture
def feeds():
    return {"item": rss_item, "feed": rss_feed, "simple": simple_feed}


@pytest.fixture
def make_orchestrator(settings):
    """Build an orchestrator whose HTTP goes to a MockFeeds instance."""

    def _make(store: FakeStore, mock: MockFeeds, **kwargs) -> AggregationOrchestrator:
        fetcher = FeedFetcher.from_settings(settings, transport=mock.transport, sleep=no_sleep)
        return AggregationOrchestrator(
            store,
            settings=settings,
            fetcher=fetcher,
            normalizer=FeedNormalizer(now=lambda: FIXED_NOW),
            rng=kwargs.pop("rng", random.Random(7)),
            sleep=no_sleep,
            **kwargs,
        )

    return _make


@pytest.fixture
def mock_feeds():
    return MockFeeds
