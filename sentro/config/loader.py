"""Configuration loader."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from .models import ConfigModel, SourceConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "sentro" / "config.yaml"


class Config:
    """Configuration manager."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """Initialize config manager."""
        if config_path is None:
            env_path = os.environ.get("SENTRO_CONFIG")
            config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH
        self.config_path = config_path
        self._config: Optional[ConfigModel] = None

    @property
    def config(self) -> ConfigModel:
        """Get loaded config."""
        if self._config is None:
            self._config = load_config(self.config_path)
        return self._config

    @property
    def sources_path(self) -> Path:
        """Path of the seed sources file next to the config file."""
        return self.config_path.parent / "sources.yaml"

    def get_db_config(self) -> Dict[str, Any]:
        """Get database configuration dict."""
        db_config = self.config.postgres.model_dump()

        if db_config.get("password_env"):
            password = os.environ.get(db_config["password_env"])
            if password:
                db_config["password"] = password

        return db_config


def load_config(config_path: Path) -> ConfigModel:
    """Load configuration from YAML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        return ConfigModel(**config_data)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}")


def load_sources(sources_path: Path) -> List[SourceConfig]:
    """Load seed sources from YAML file."""
    if not sources_path.exists():
        raise FileNotFoundError(f"Sources file not found: {sources_path}")

    try:
        with open(sources_path) as f:
            sources_data = yaml.safe_load(f)

        if sources_data is None or "sources" not in sources_data:
            return []

        sources: List[SourceConfig] = []
        names = set()
        for source_data in sources_data["sources"]:
            try:
                source = SourceConfig(**source_data)
            except ValidationError as e:
                logger.warning("Skipping invalid source %s: %s", source_data.get("name", "unknown"), e)
                continue

            # Sources are keyed by name in the database
            if source.name in names:
                logger.warning("Skipping duplicate source %s", source.name)
                continue
            names.add(source.name)
            sources.append(source)

        return sources
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in sources file: {e}")


def save_config(config: ConfigModel, config_path: Path) -> None:
    """Save configuration to YAML file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)


def save_sources(sources: List[SourceConfig], sources_path: Path) -> None:
    """Save seed sources to YAML file."""
    sources_path.parent.mkdir(parents=True, exist_ok=True)

    sources_data = {"sources": [s.model_dump() for s in sources]}

    with open(sources_path, "w") as f:
        yaml.dump(sources_data, f, default_flow_style=False, sort_keys=False)
