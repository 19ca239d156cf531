"""Tests for deduplication and batched persistence."""

import asyncio
import threading

from sentro.pipeline import BatchPersister, Deduplicator
from sentro.pipeline.dedup import unique_articles

from conftest import FakeStore, no_sleep


def test_unique_articles_keeps_first(make_article):
    first = make_article(1, title="First")
    repeat = make_article(1, title="Repeat")
    other_source = make_article(1, source="Beta")

    unique = unique_articles([first, repeat, other_source])

    assert unique == [first, other_source]


def test_deduplicate_against_store(store, make_article):
    stored = make_article(1)
    store.articles[stored.identity] = stored
    articles = [make_article(1), make_article(2), make_article(2), make_article(3)]

    result = Deduplicator(store).deduplicate(articles)

    assert result.total == 4
    assert len(result.unique) == 3
    assert result.duplicates == 1
    assert result.existing == 1
    assert [a.source_guid for a in result.new] == ["Alpha-2", "Alpha-3"]


def test_force_update_skips_store_lookup(store, make_article):
    stored = make_article(1)
    store.articles[stored.identity] = stored

    result = Deduplicator(store).deduplicate([make_article(1), make_article(2)], force_update=True)

    assert len(result.new) == 2
    assert result.existing == 0


def test_persist_isolates_failed_batch(store, make_article):
    store.fail_batches = {2}
    articles = [make_article(i) for i in range(45)]

    result = asyncio.run(BatchPersister(store, batch_size=20, sleep=no_sleep).persist(articles))

    assert result.batches == 3
    assert result.inserted_count == 40
    assert len(result.insert_errors) == 1
    assert result.insert_errors[0]["batch"] == 3
    assert result.insert_errors[0]["batch_index"] == 2
    assert "batch 2" in result.insert_errors[0]["error"]
    assert not result.cancelled


def test_persist_counts_only_written_rows(store, make_article):
    stored = make_article(0)
    store.articles[stored.identity] = stored

    result = asyncio.run(
        BatchPersister(store, sleep=no_sleep).persist([make_article(i) for i in range(5)])
    )

    assert result.inserted_count == 4


def test_persist_sleeps_between_batches(store, make_article):
    delays = []

    async def record_sleep(delay):
        delays.append(delay)

    persister = BatchPersister(store, batch_size=10, batch_delay=0.5, sleep=record_sleep)
    asyncio.run(persister.persist([make_article(i) for i in range(25)]))

    assert delays == [0.5, 0.5]


class CancellingStore(FakeStore):
    """Sets the cancel event while the first batch is being inserted."""

    def __init__(self, cancel):
        super().__init__()
        self.cancel = cancel

    def insert_articles(self, articles, overwrite=False):
        self.cancel.set()
        return super().insert_articles(articles, overwrite=overwrite)


def test_cancel_lets_in_flight_batch_finish(make_article):
    cancel = threading.Event()
    store = CancellingStore(cancel)

    result = asyncio.run(
        BatchPersister(store, batch_size=20, sleep=no_sleep).persist(
            [make_article(i) for i in range(50)], cancel=cancel
        )
    )

    assert result.cancelled
    assert result.batches == 1
    assert result.inserted_count == 20
    assert len(store.articles) == 20
