"""Normalize RSS and Atom feeds into canonical articles."""

import logging
import re
from datetime import datetime
from typing import Callable, List, Optional

import feedparser
import pendulum

from ..models import Article, Source
from .errors import FeedParseError

logger = logging.getLogger(__name__)

SUPPORTED_TYPES = {"rss"}

DEFAULT_CATEGORY = "crypto"
WEB3_CATEGORY = "web3"
WEB3_KEYWORDS = ("bitcoin", "ethereum", "blockchain")

IMG_SRC_RE = re.compile(r'<img[^>]+src="([^">]+)"', re.IGNORECASE)


def classify_category(category_text: str) -> str:
    """Upgrade the default category to web3 when a keyword appears."""
    text = category_text.lower()
    if any(keyword in text for keyword in WEB3_KEYWORDS):
        return WEB3_CATEGORY
    return DEFAULT_CATEGORY


def extract_tags(terms: List[str]) -> Optional[List[str]]:
    """Lower-cased category terms longer than two characters, or None."""
    tags = [term.strip().lower() for term in terms if term and len(term.strip()) > 2]
    return tags or None


def _text(entry, key: str) -> str:
    value = entry.get(key)
    return value.strip() if isinstance(value, str) else ""


class FeedNormalizer:
    """Convert fetched feed bodies into Article records."""

    def __init__(self, now: Callable[[], datetime] = lambda: pendulum.now("UTC")) -> None:
        """Initialize normalizer; ``now`` supplies created_at and missing dates."""
        self.now = now

    def supports(self, source: Source) -> bool:
        """Whether the source type has a parser."""
        return source.type in SUPPORTED_TYPES

    def normalize(self, source: Source, body: str) -> List[Article]:
        """
        Parse a feed body into articles.

        Unsupported source types yield an empty list. RSS items are used when
        present; Atom entries otherwise.

        Raises:
            FeedParseError: when the body is not a recognizable feed
        """
        if not self.supports(source):
            logger.info("%s source type not yet implemented for %s", source.type.upper(), source.name)
            return []

        parsed = feedparser.parse(body)
        entries = parsed.entries[: source.article_limit]

        if not parsed.entries:
            if parsed.bozo:
                raise FeedParseError(f"Invalid feed: {parsed.get('bozo_exception')}")
            if not parsed.get("version"):
                raise FeedParseError("Unrecognized feed format")
            return []

        if parsed.get("version", "").startswith("atom"):
            articles = [self._from_atom(source, entry) for entry in entries]
        else:
            articles = [self._from_rss(source, entry) for entry in entries]

        articles = [a for a in articles if a is not None]
        logger.info("Extracted %d articles from %s", len(articles), source.name)
        return articles

    def _published_at(self, entry, *keys: str) -> datetime:
        """First parseable date among ``keys``, else now()."""
        for key in keys:
            parsed = entry.get(f"{key}_parsed")
            if parsed:
                return pendulum.datetime(*parsed[:6], tz="UTC")
            raw = _text(entry, key)
            if raw:
                try:
                    value = pendulum.parse(raw, strict=False)
                except ValueError:
                    logger.debug("Unparseable date %r", raw)
                    continue
                if isinstance(value, datetime):
                    return pendulum.instance(value).in_timezone("UTC")
        return self.now()

    def _image_url(self, entry, content: str) -> Optional[str]:
        """Enclosure image, then media:content image, then first <img> in content."""
        enclosures = entry.get("enclosures") or []
        if enclosures and (enclosures[0].get("type") or "").startswith("image/"):
            url = enclosures[0].get("href") or enclosures[0].get("url")
            if url:
                return url

        media = entry.get("media_content") or []
        if media and media[0].get("medium") == "image" and media[0].get("url"):
            return media[0]["url"]

        if content:
            match = IMG_SRC_RE.search(content)
            if match:
                return match.group(1)

        return None

    def _from_rss(self, source: Source, entry) -> Optional[Article]:
        title = _text(entry, "title")
        link = _text(entry, "link")
        if not title or not link:
            return None

        description = _text(entry, "summary") or _text(entry, "description")
        encoded = entry.get("content") or []
        content = (encoded[0].get("value") if encoded else None) or description

        terms = [tag.get("term") or "" for tag in entry.get("tags") or []]

        return Article(
            title=title,
            content=content or "",
            source=source.name,
            url=link,
            image_url=self._image_url(entry, content),
            published_at=self._published_at(entry, "published", "updated"),
            created_at=self.now(),
            category=classify_category(", ".join(terms)),
            tags=extract_tags(terms),
            language="en",
            source_id=source.id,
            source_guid=_text(entry, "id") or link,
        )

    def _from_atom(self, source: Source, entry) -> Optional[Article]:
        title = _text(entry, "title")

        link = ""
        for i, candidate in enumerate(entry.get("links") or []):
            if candidate.get("rel") == "alternate" or i == 0:
                link = (candidate.get("href") or "").strip()
                break
        if not link:
            link = _text(entry, "link")

        if not title or not link:
            return None

        summary = _text(entry, "summary")
        content = entry.get("content") or []
        body = (content[0].get("value") if content else None) or summary

        return Article(
            title=title,
            content=body or "",
            source=source.name,
            url=link,
            image_url=None,
            published_at=self._published_at(entry, "published", "updated"),
            created_at=self.now(),
            category=DEFAULT_CATEGORY,
            tags=None,
            language="en",
            source_id=source.id,
            source_guid=_text(entry, "id") or link,
        )
