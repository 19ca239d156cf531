"""Intra-run and cross-run article deduplication."""

import logging
from typing import List

from pydantic import BaseModel, Field

from ..db.store import Store
from ..models import Article

logger = logging.getLogger(__name__)


class DedupResult(BaseModel):
    """Articles surviving each deduplication step."""

    total: int = Field(0, description="Articles fetched")
    unique: List[Article] = Field(default_factory=list, description="After intra-run dedup")
    new: List[Article] = Field(default_factory=list, description="Articles to insert")

    @property
    def duplicates(self) -> int:
        return self.total - len(self.unique)

    @property
    def existing(self) -> int:
        return len(self.unique) - len(self.new)


def unique_articles(articles: List[Article]) -> List[Article]:
    """Keep the first article for each (source, source_guid), preserving order."""
    seen = set()
    unique = []
    for article in articles:
        key = article.dedup_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(article)
    return unique


class Deduplicator:
    """Drop repeated and already stored articles."""

    def __init__(self, store: Store) -> None:
        self.store = store

    def deduplicate(self, articles: List[Article], force_update: bool = False) -> DedupResult:
        """
        Deduplicate a run's articles.

        Args:
            articles: Articles from every source, in fetch order
            force_update: Skip the store lookup and treat every unique article as new

        Returns:
            DedupResult with the unique and new article lists
        """
        unique = unique_articles(articles)
        logger.info("Unique articles after deduplication: %d", len(unique))

        if force_update:
            logger.info("Force update enabled - skipping duplicate checks")
            return DedupResult(total=len(articles), unique=unique, new=list(unique))

        pairs = {a.identity for a in unique if a.source and a.source_guid}
        existing = self.store.existing_keys(pairs) if pairs else set()

        new = [a for a in unique if a.identity not in existing]
        logger.info("New articles to add after filtering duplicates: %d", len(new))

        return DedupResult(total=len(articles), unique=unique, new=new)
