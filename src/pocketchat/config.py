"""
Application configuration management for PocketChat.

This module provides configuration loading from environment variables
and configuration files, with type-safe settings classes.
"""

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import InvalidConfigError, MissingConfigError

DEFAULT_DB_PATH = "~/.pocketchat/data/users.db"

JOURNAL_MODES = ("DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF")


class StorageSettings(BaseSettings):
    """SQLite storage configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="POCKETCHAT_DB_",
        extra="ignore",
    )

    path: str = Field(default=DEFAULT_DB_PATH, description="Database file path")
    busy_timeout: int = Field(
        default=5000, ge=0, description="Lock wait timeout in milliseconds"
    )
    journal_mode: str = Field(default="WAL", description="SQLite journal mode")
    require_known_accounts: bool = Field(
        default=False,
        description="Reject messages whose sender or receiver is not registered",
    )

    @field_validator("journal_mode")
    @classmethod
    def validate_journal_mode(cls, v: str) -> str:
        """Validate the journal mode against the modes SQLite accepts."""
        v_upper = v.upper()
        if v_upper not in JOURNAL_MODES:
            raise ValueError(
                f"Journal mode must be one of: {', '.join(JOURNAL_MODES)}"
            )
        return v_upper

    @property
    def resolved_path(self) -> str:
        """Database path with ``~`` expanded; ``:memory:`` is kept as is."""
        if self.path == ":memory:":
            return self.path
        return os.path.expanduser(self.path)


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        extra="ignore",
    )

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v_upper


class Settings(BaseSettings):
    """Main application settings aggregating all configuration."""

    model_config = SettingsConfigDict(
        env_prefix="POCKETCHAT_",
        extra="ignore",
    )

    app_name: str = Field(default="PocketChat", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_toml(cls, path: str | Path) -> "Settings":
        """
        Load settings from a TOML configuration file.

        Args:
            path: Path to the TOML configuration file.

        Returns:
            Settings instance with loaded configuration.

        Raises:
            MissingConfigError: If the file does not exist.
            InvalidConfigError: If the file cannot be parsed.
        """
        path = Path(path)
        if not path.exists():
            raise MissingConfigError(str(path))

        try:
            with open(path, "rb") as f:
                config_data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise InvalidConfigError(
                config_key="config_file",
                value=str(path),
                reason=f"Failed to parse TOML: {e}",
            ) from e

        return cls._from_dict(config_data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Settings":
        """
        Create settings from a dictionary.

        Args:
            data: Configuration dictionary.

        Returns:
            Settings instance.
        """
        settings_kwargs: dict[str, Any] = {}

        if "app" in data:
            settings_kwargs.update(data["app"])

        if "storage" in data:
            settings_kwargs["storage"] = StorageSettings(**data["storage"])

        if "logging" in data:
            settings_kwargs["logging"] = LoggingSettings(**data["logging"])

        return cls(**settings_kwargs)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings come from ``POCKETCHAT_CONFIG_FILE`` when it points at an
    existing TOML file, otherwise from environment variables and defaults.

    Returns:
        Settings instance.
    """
    config_file = os.getenv("POCKETCHAT_CONFIG_FILE")

    if config_file and Path(config_file).exists():
        return Settings.from_toml(config_file)
    return Settings()


def reload_settings() -> Settings:
    """
    Reload settings, clearing the cache.

    Returns:
        Fresh Settings instance.
    """
    get_settings.cache_clear()
    return get_settings()
