"""Configuration models."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..models.source import SourceType


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("sentro", description="Database name")
    user: str = Field("sentro", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")


class AggregationSettings(BaseModel):
    """Fetch, retry and persistence tuning for aggregation runs."""

    max_retries: int = Field(2, description="Extra fetch attempts per source", ge=0, le=10)
    base_retry_delay: float = Field(2.0, description="Backoff base delay in seconds", ge=0.0)
    max_retry_delay: float = Field(10.0, description="Backoff delay cap in seconds", ge=0.0)
    source_delay: float = Field(2.0, description="Pause between sources in seconds", ge=0.0)
    batch_size: int = Field(20, description="Articles per insert batch", ge=1, le=1000)
    batch_delay: float = Field(0.5, description="Pause between insert batches in seconds", ge=0.0)
    timeout: float = Field(30.0, description="HTTP timeout in seconds", gt=0.0)
    user_agent: str = Field("Sentro/1.0 (news aggregator)", description="HTTP User-Agent")
    cooldown_minutes: int = Field(
        15, description="Cooldown after a rate-limited run", ge=0, le=24 * 60
    )


class ServerConfig(BaseModel):
    """HTTP trigger server configuration."""

    host: str = Field("127.0.0.1", description="Bind address")
    port: int = Field(8000, description="Bind port", ge=1, le=65535)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Log level name")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Normalize and validate the level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class ConfigModel(BaseModel):
    """Main configuration model."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    aggregation: AggregationSettings = Field(default_factory=AggregationSettings)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class SourceConfig(BaseModel):
    """Source entry from sources.yaml."""

    name: str = Field(..., description="Source name")
    url: str = Field(..., description="Feed URL")
    type: SourceType = Field("rss", description="Source type")
    article_limit: int = Field(10, description="Max items per run", ge=1)
