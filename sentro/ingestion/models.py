"""Data models for ingestion."""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models import Article
from .errors import ErrorKind


class SourceResult(BaseModel):
    """Outcome of fetching and normalizing one source."""

    source_name: str = Field(..., description="Source name")
    source_url: str = Field(..., description="Feed URL")
    success: bool = Field(..., description="Whether fetch and parse succeeded")
    skipped: bool = Field(False, description="Source type has no parser")
    articles: List[Article] = Field(default_factory=list, description="Normalized articles")
    error: Optional[str] = Field(None, description="Error message if failed")
    error_kind: Optional[ErrorKind] = Field(None, description="Error classification if failed")

    @property
    def article_count(self) -> int:
        return len(self.articles)
