"""Source model for configured feed origins."""

from datetime import datetime
from typing import Literal, Optional, get_args

from pydantic import Field

from .base import DBModel

SourceType = Literal["rss", "api", "html"]
SOURCE_TYPES = get_args(SourceType)


class Source(DBModel):
    """Configured feed source."""

    name: str = Field(..., description="Human readable source name")
    url: str = Field(..., description="Feed URL")
    type: SourceType = Field("rss", description="Source type (rss, api, html)")
    article_limit: int = Field(10, description="Max items pulled per run", ge=1)
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")
