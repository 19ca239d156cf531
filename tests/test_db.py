"""Tests for the Postgres store against mocked connections."""

from unittest.mock import MagicMock

import pytest

from sentro.db import PostgresStore
from sentro.db.articles import ArticleStorage
from sentro.db.logs import LogManager
from sentro.db.settings import SettingsManager


@pytest.fixture
def cursor():
    return MagicMock()


@pytest.fixture
def conn(cursor):
    connection = MagicMock()
    connection.cursor.return_value.__enter__.return_value = cursor
    return connection


def test_insert_articles_skips_conflicts(conn, cursor, make_article):
    cursor.fetchone.side_effect = [{"id": 1}, None, {"id": 3}]
    cursor.nextset.side_effect = [True, True, None]
    articles = [make_article(i) for i in range(3)]

    inserted = ArticleStorage().insert_articles(conn, articles)

    assert inserted == [1, 3]
    query, rows = cursor.executemany.call_args.args
    assert "ON CONFLICT (source, source_guid) DO NOTHING" in query
    assert cursor.executemany.call_args.kwargs == {"returning": True}
    assert [row["source_guid"] for row in rows] == ["Alpha-0", "Alpha-1", "Alpha-2"]


def test_insert_articles_overwrite(conn, cursor, make_article):
    cursor.fetchone.side_effect = [{"id": 7}]
    cursor.nextset.side_effect = [None]

    inserted = ArticleStorage().insert_articles(conn, [make_article(1)], overwrite=True)

    assert inserted == [7]
    query = cursor.executemany.call_args.args[0]
    assert "DO UPDATE SET" in query
    assert "title = EXCLUDED.title" in query
    assert "source_guid = EXCLUDED.source_guid" not in query


def test_insert_empty_batch(conn, cursor):
    assert ArticleStorage().insert_articles(conn, []) == []
    cursor.executemany.assert_not_called()


def test_existing_keys_single_query(conn, cursor):
    cursor.fetchall.return_value = [{"source": "Alpha", "source_guid": "a-1"}]

    existing = ArticleStorage().existing_keys(conn, [("Alpha", "a-1"), ("Alpha", "a-2")])

    assert existing == {("Alpha", "a-1")}
    assert cursor.execute.call_count == 1
    assert cursor.execute.call_args.args[1] == (["Alpha", "Alpha"], ["a-1", "a-2"])


def test_get_logs_filters(conn, cursor):
    cursor.fetchall.return_value = []

    LogManager().get_logs(conn, status="error", event_type="crypto_aggregation", limit=5, offset=10)

    query, params = cursor.execute.call_args.args
    assert "WHERE status = %s AND event_type = %s" in query
    assert "ORDER BY created_at DESC" in query
    assert params == ["error", "crypto_aggregation", 5, 10]


def test_settings_defaults_when_row_missing(conn, cursor):
    cursor.fetchone.return_value = None
    manager = SettingsManager()

    assert manager.get_status(conn).status == "never_run"
    assert manager.get_schedule(conn).frequency == "15min"


def test_unknown_schedule_frequency_falls_back(conn, cursor):
    cursor.fetchone.return_value = {"enabled": True, "frequency": "weekly", "next_scheduled": None}

    schedule = SettingsManager().get_schedule(conn)

    assert schedule.enabled is True
    assert schedule.frequency == "15min"


def test_store_borrows_pool_connection(conn, cursor):
    pool = MagicMock()
    pool.connection.return_value.__enter__.return_value = conn
    cursor.fetchall.return_value = [
        {"id": 1, "name": "Alpha", "url": "https://alpha.example.com/feed", "type": "rss",
         "article_limit": 10, "created_at": None, "updated_at": None},
    ]

    sources = PostgresStore(pool).get_sources()

    assert [s.name for s in sources] == ["Alpha"]
    pool.connection.assert_called_once()
