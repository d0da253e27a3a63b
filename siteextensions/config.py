"""Configuration management for siteext.

Loads configuration from:
1. config.toml (defaults)
2. Environment variables (overrides, including a local .env file)
"""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from dotenv import load_dotenv

from siteextensions.catalog import DEFAULT_FEED_URL

# Load .env file if present
load_dotenv()


@dataclass
class ExtensionsConfig:
    """Where extensions are installed and where they come from."""

    # Installation root (default: ~/site/SiteExtensions)
    root_dir: str = "~/site/SiteExtensions"

    # OData feed serving site extension packages
    feed_url: str = DEFAULT_FEED_URL


@dataclass
class FeedConfig:
    """Remote feed client settings."""

    timeout: float = 30.0
    page_size: int = 100
    max_pages: int = 10  # Upper bound on next-page links followed per query


@dataclass
class IOConfig:
    """Retry policy for file operations."""

    retry_attempts: int = 3
    retry_delay: float = 0.25  # Seconds


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class Config:
    """Main configuration container."""

    extensions: ExtensionsConfig = field(default_factory=ExtensionsConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)
    io: IOConfig = field(default_factory=IOConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def root_path(self) -> Path:
        """Installation root as an absolute path."""
        return Path(self.extensions.root_dir).expanduser()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        return cls(
            extensions=ExtensionsConfig(**data.get("extensions", {})),
            feed=FeedConfig(**data.get("feed", {})),
            io=IOConfig(**data.get("io", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )


def find_config_file() -> Path | None:
    """Find config.toml in current or parent directories.

    Returns:
        Path to config.toml or None if not found.
    """
    current = Path.cwd()

    for directory in [current, *current.parents]:
        config_path = directory / "config.toml"
        if config_path.exists():
            return config_path

    return None


def load_config(config_path: Path | str | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Optional explicit path to config.toml

    Returns:
        Config object with merged settings.
    """
    config_data: dict[str, Any] = {}

    if config_path is None:
        config_path = find_config_file()

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path, "rb") as f:
                config_data = tomllib.load(f)

    env_overrides = {
        "extensions": {
            "root_dir": os.getenv("SITEEXT_ROOT"),
            "feed_url": os.getenv("SITEEXT_FEED_URL"),
        },
        "feed": {
            "timeout": _float_or_none(os.getenv("SITEEXT_FEED_TIMEOUT")),
        },
        "io": {
            "retry_attempts": _int_or_none(os.getenv("SITEEXT_RETRY_ATTEMPTS")),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL"),
        },
    }

    # Merge env overrides (only non-None values)
    for section, values in env_overrides.items():
        if section not in config_data:
            config_data[section] = {}
        for key, value in values.items():
            if value is not None:
                config_data[section][key] = value

    return Config.from_dict(config_data)


def _int_or_none(value: str | None) -> int | None:
    """Convert string to int, or return None."""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _float_or_none(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


# Global config instance (lazy loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config object (loaded once, cached).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Force reload of configuration.

    Returns:
        Fresh Config object.
    """
    global _config
    _config = load_config()
    return _config
