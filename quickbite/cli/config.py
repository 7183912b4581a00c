"""Configuration management for the CLI."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from quickbite.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Environment variable -> config key
ENV_OVERRIDES = {
    "QUICKBITE_BACKEND": "backend",
    "QUICKBITE_DATABASE": "database",
    "MONGODB_URI": "mongo_uri",
    "QUICKBITE_MONGO_DATABASE": "mongo_database",
    "QUICKBITE_SESSION_TTL": "session_ttl",
}

DEFAULTS: dict[str, Any] = {
    "backend": "sqlite",
    "database": "quickbite.db",
    "mongo_database": "quickbite",
    "seed": True,
}


class Config:
    """Configuration management for the CLI application."""

    @staticmethod
    def from_file(path: Path) -> dict[str, Any]:
        """Load configuration from a YAML file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file {path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Error reading config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return data

    @staticmethod
    def get_config_paths() -> list[Path]:
        """Get the default configuration file paths to check."""
        paths = []

        # User config
        xdg_config_home = Path(
            os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
        )
        paths.append(xdg_config_home / "quickbite" / "config.yaml")

        # Project config
        paths.append(Path(".quickbite.yaml"))
        paths.append(Path("quickbite.yaml"))

        return paths

    @staticmethod
    def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
        """Merge multiple configuration dictionaries."""
        result: dict[str, Any] = {}
        for config in configs:
            result = _deep_merge(result, config)
        return result


def env_overrides() -> dict[str, Any]:
    overrides = {}
    for variable, key in ENV_OVERRIDES.items():
        if value := os.environ.get(variable):
            overrides[key] = value
    return overrides


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration from files and environment variables.

    Default locations are merged in order (later files win), then an
    explicit ``path``, then environment variables.
    """
    config = dict(DEFAULTS)

    for candidate in Config.get_config_paths():
        if candidate.exists():
            try:
                config = Config.merge_configs(config, Config.from_file(candidate))
            except ConfigurationError as e:
                logger.warning(f"Skipping config file: {e}")

    if path is not None:
        config = Config.merge_configs(config, Config.from_file(path))

    return Config.merge_configs(config, env_overrides())


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result
