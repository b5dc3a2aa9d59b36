"""Configuration loading for coursereg."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from coursereg.registry.storage import STORAGE_BACKENDS

CONFIG_FILE_NAME = "coursereg.yaml"

# Environment variable -> Settings field. PORT is honoured for platform hosts.
ENV_OVERRIDES = {
    "COURSEREG_HOST": "host",
    "PORT": "port",
    "COURSEREG_PORT": "port",
    "COURSEREG_STORAGE": "storage",
    "COURSEREG_SEED": "seed",
    "COURSEREG_LOG_LEVEL": "log_level",
    "COURSEREG_LOG_DIR": "log_dir",
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_INT_SETTINGS = {"port", "log_max_bytes", "log_backup_count"}
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


@dataclass(frozen=True)
class Settings:
    """Service settings.

    Every field has a default, so an empty config file (or none) is valid.
    """

    host: str = "127.0.0.1"
    port: int = 3000
    storage: str = "memory"
    seed: bool = True
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_max_bytes: int = 10 * 1024 * 1024
    log_backup_count: int = 5

    def __post_init__(self) -> None:
        if self.storage not in STORAGE_BACKENDS:
            raise ConfigError(
                f"Invalid storage '{self.storage}', expected one of: {', '.join(STORAGE_BACKENDS)}"
            )
        if not 0 < self.port < 65536:
            raise ConfigError(f"Invalid port {self.port}")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(
                f"Invalid log_level '{self.log_level}', expected one of: {', '.join(LOG_LEVELS)}"
            )
        if self.log_max_bytes < 0 or self.log_backup_count < 0:
            raise ConfigError("log_max_bytes and log_backup_count must not be negative")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Settings:
        """Create settings from a dictionary.

        Args:
            data: Configuration mapping, e.g. parsed from YAML.

        Returns:
            Parsed settings.

        Raises:
            ConfigError: If a key is unknown or a value has the wrong type.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown settings: {', '.join(unknown)}")
        return cls(**{key: _coerce(key, value) for key, value in data.items()})

    def with_env(self, environ: Mapping[str, str] | None = None) -> Settings:
        """Return a copy with environment variable overrides applied."""
        if environ is None:
            environ = os.environ
        overrides = {
            field_name: _coerce(field_name, environ[var])
            for var, field_name in ENV_OVERRIDES.items()
            if environ.get(var)
        }
        return replace(self, **overrides) if overrides else self


def _coerce(key: str, value: Any) -> Any:
    """Convert a raw config value to the type of the Settings field."""
    if key in _INT_SETTINGS:
        if isinstance(value, bool):
            raise ConfigError(f"Invalid {key} {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid {key} {value!r}") from e
    if key == "seed":
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ConfigError(f"Invalid boolean for seed: {value!r}")
    if not isinstance(value, str):
        raise ConfigError(f"Setting '{key}' must be a string, got {type(value).__name__}")
    if key == "storage":
        return value.strip().lower()
    if key == "log_level":
        return value.strip().upper()
    return value


def load_config(config_path: Path | str) -> Settings:
    """Load settings from a YAML file.

    Args:
        config_path: Path to coursereg.yaml file.

    Returns:
        Parsed settings (without environment overrides).

    Raises:
        ConfigError: If file doesn't exist or is invalid.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a YAML mapping, got {type(data).__name__}")

    return Settings.from_dict(data)


def find_config(start_path: Path | str | None = None) -> Path | None:
    """Find coursereg.yaml by walking up the directory tree.

    Args:
        start_path: Starting directory. Defaults to current directory.

    Returns:
        Path to the config file, or None if there is none.
    """
    current = Path.cwd() if start_path is None else Path(start_path)
    current = current.resolve()

    for directory in (current, *current.parents):
        config_path = directory / CONFIG_FILE_NAME
        if config_path.exists():
            return config_path
    return None


def get_settings(config_path: Path | str | None = None) -> Settings:
    """Resolve settings: config file (explicit or discovered), then environment."""
    if config_path is None:
        config_path = find_config()
    settings = load_config(config_path) if config_path is not None else Settings()
    return settings.with_env()
