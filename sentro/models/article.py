"""Canonical article record produced by the normalizer."""

from datetime import datetime, timezone
from typing import List, Optional, Tuple

from pydantic import Field

from .base import DBModel


class Article(DBModel):
    """Normalized, store-ready article."""

    title: str = Field(..., description="Article title")
    content: str = Field("", description="HTML or plain text body")
    source: str = Field(..., description="Source name")
    url: str = Field(..., description="Article URL")
    image_url: Optional[str] = Field(None, description="Lead image URL")
    published_at: datetime = Field(..., description="Publication timestamp (UTC)")
    relevance_score: Optional[float] = Field(None, description="Stored relevance scalar")
    category: str = Field("crypto", description="Article category (crypto, web3)")
    tags: Optional[List[str]] = Field(None, description="Lower-cased category tags")
    language: str = Field("en", description="Article language")
    source_id: Optional[int] = Field(None, description="Foreign key to sources table")
    source_guid: str = Field(..., description="Feed guid, falling back to the link")

    @property
    def identity(self) -> Tuple[str, str]:
        """The (source, source_guid) pair identifying a logical article."""
        return self.source, self.source_guid

    @property
    def dedup_key(self) -> str:
        return f"{self.source}-{self.source_guid}"

    def to_row(self) -> dict:
        """Column values for an insert into the articles table."""
        return {
            "title": self.title,
            "content": self.content,
            "source": self.source,
            "url": self.url,
            "image_url": self.image_url,
            "published_at": self.published_at,
            "created_at": self.created_at or datetime.now(timezone.utc),
            "relevance_score": self.relevance_score,
            "category": self.category,
            "tags": self.tags,
            "language": self.language,
            "source_id": self.source_id,
            "source_guid": self.source_guid,
        }
