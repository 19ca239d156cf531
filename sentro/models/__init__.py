"""Data models for Sentro."""

from .article import Article
from .log import AggregationLog
from .settings import AggregationStatus, ScheduleConfig
from .source import Source

__all__ = ["Article", "AggregationLog", "AggregationStatus", "ScheduleConfig", "Source"]
