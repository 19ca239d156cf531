"""Configuration management for Sentro."""

from .loader import Config, load_config, load_sources, save_config, save_sources
from .models import (
    AggregationSettings,
    ConfigModel,
    LoggingConfig,
    PostgresConfig,
    ServerConfig,
    SourceConfig,
)

__all__ = [
    "AggregationSettings",
    "Config",
    "ConfigModel",
    "LoggingConfig",
    "PostgresConfig",
    "ServerConfig",
    "SourceConfig",
    "load_config",
    "load_sources",
    "save_config",
    "save_sources",
]
