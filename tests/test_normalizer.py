"""Tests for feed normalization."""

from datetime import datetime, timezone

import pytest

from sentro.ingestion import FeedNormalizer, FeedParseError
from sentro.ingestion.normalizer import classify_category, extract_tags
from sentro.models import Source

NOW = datetime(2025, 2, 1, 8, 30, tzinfo=timezone.utc)

ATOM_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Test</title>
  <id>urn:test:feed</id>
  <updated>2025-01-05T09:00:00Z</updated>
  <entry>
    <title>Atom story</title>
    <link rel="alternate" href="https://atom.example.com/story"/>
    <id>urn:test:entry:1</id>
    <updated>2025-01-05T09:00:00Z</updated>
    <summary>Atom summary</summary>
  </entry>
</feed>
"""


@pytest.fixture
def normalizer():
    return FeedNormalizer(now=lambda: NOW)


@pytest.fixture
def source():
    return Source(id=3, name="CoinDesk", url="https://coindesk.example.com/rss", article_limit=10)


def test_classify_category():
    assert classify_category("Markets, Bitcoin") == "web3"
    assert classify_category("ETHEREUM") == "web3"
    assert classify_category("DeFi, Policy") == "crypto"
    assert classify_category("") == "crypto"


def test_extract_tags_drops_short_terms():
    assert extract_tags(["Bitcoin", "AI", " Markets "]) == ["bitcoin", "markets"]
    assert extract_tags(["AI", ""]) is None


def test_rss_item_fields(normalizer, source, feeds):
    body = feeds["feed"](
        feeds["item"](
            "Bitcoin hits new high",
            "https://coindesk.example.com/btc",
            guid="btc-1",
            categories=["Bitcoin", "Markets"],
        )
    )

    articles = normalizer.normalize(source, body)

    assert len(articles) == 1
    article = articles[0]
    assert article.title == "Bitcoin hits new high"
    assert article.url == "https://coindesk.example.com/btc"
    assert article.source == "CoinDesk"
    assert article.source_id == 3
    assert article.source_guid == "btc-1"
    assert article.category == "web3"
    assert article.tags == ["bitcoin", "markets"]
    assert article.language == "en"
    assert article.published_at == datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc)
    assert article.created_at == NOW


def test_guid_falls_back_to_link(normalizer, source, feeds):
    body = feeds["feed"](feeds["item"]("No guid", "https://coindesk.example.com/no-guid"))

    article = normalizer.normalize(source, body)[0]

    assert article.source_guid == "https://coindesk.example.com/no-guid"


def test_missing_date_uses_now(normalizer, source, feeds):
    body = feeds["feed"](feeds["item"]("Undated", "https://coindesk.example.com/u", pub_date=None))

    article = normalizer.normalize(source, body)[0]

    assert article.published_at == NOW


def test_unparseable_date_uses_now(normalizer, source, feeds):
    body = feeds["feed"](feeds["item"]("Odd date", "https://coindesk.example.com/d", pub_date="not a date"))

    article = normalizer.normalize(source, body)[0]

    assert article.published_at == NOW


def test_items_without_title_or_link_are_skipped(normalizer, source, feeds):
    body = feeds["feed"](
        feeds["item"]("", "https://coindesk.example.com/untitled"),
        feeds["item"]("No link", ""),
        feeds["item"]("Kept", "https://coindesk.example.com/kept"),
    )

    articles = normalizer.normalize(source, body)

    assert [a.title for a in articles] == ["Kept"]


def test_article_limit(normalizer, feeds):
    source = Source(name="Limited", url="https://limited.example.com", article_limit=2)

    articles = normalizer.normalize(source, feeds["simple"]("limited", 5))

    assert len(articles) == 2


def test_enclosure_image_wins_over_inline_image(normalizer, source, feeds):
    body = feeds["feed"](
        feeds["item"](
            "With images",
            "https://coindesk.example.com/img",
            extra=(
                '<enclosure url="https://img.example.com/lead.jpg" type="image/jpeg" length="100"/>'
                '<content:encoded><![CDATA[<p><img src="https://img.example.com/inline.png"/></p>]]>'
                "</content:encoded>"
            ),
        )
    )

    article = normalizer.normalize(source, body)[0]

    assert article.image_url == "https://img.example.com/lead.jpg"


def test_media_content_image(normalizer, source, feeds):
    body = feeds["feed"](
        feeds["item"](
            "Media",
            "https://coindesk.example.com/media",
            extra='<media:content url="https://img.example.com/media.jpg" medium="image"/>',
        )
    )

    article = normalizer.normalize(source, body)[0]

    assert article.image_url == "https://img.example.com/media.jpg"


def test_encoded_content_preferred_over_description(normalizer, source, feeds):
    body = feeds["feed"](
        feeds["item"](
            "Encoded",
            "https://coindesk.example.com/encoded",
            description="Short",
            extra="<content:encoded><![CDATA[<p>Full body</p>]]></content:encoded>",
        )
    )

    article = normalizer.normalize(source, body)[0]

    assert "Full body" in article.content


def test_atom_entries(normalizer, source):
    articles = normalizer.normalize(source, ATOM_FEED)

    assert len(articles) == 1
    article = articles[0]
    assert article.title == "Atom story"
    assert article.url == "https://atom.example.com/story"
    assert article.source_guid == "urn:test:entry:1"
    assert article.content == "Atom summary"
    assert article.category == "crypto"
    assert article.published_at == datetime(2025, 1, 5, 9, 0, tzinfo=timezone.utc)


def test_empty_feed_yields_no_articles(normalizer, source, feeds):
    assert normalizer.normalize(source, feeds["feed"]()) == []


def test_garbage_body_raises(normalizer, source):
    with pytest.raises(FeedParseError):
        normalizer.normalize(source, "this is not a feed")


def test_unsupported_source_type(normalizer):
    source = Source(name="Api", url="https://api.example.com", type="api")

    assert not normalizer.supports(source)
    assert normalizer.normalize(source, "{}") == []
