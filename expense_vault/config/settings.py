"""
Configuration Management for Expense Vault

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Only the outer shell is configurable (where data lives,
which backend holds it, how loudly we log). The built-in collection
defaults (budget amount, category list, transaction type) are code
constants in the models, not settings.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Embedded key-value store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_VAULT_STORAGE_",
        extra="ignore"
    )

    backend: Literal["json_file", "sqlite", "memory"] = Field(
        default="json_file",
        description="Key-value store backend"
    )
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".expense_vault",
        description="Directory holding the store's files"
    )
    sqlite_filename: str = Field(
        default="vault.db",
        min_length=1,
        description="Database file name inside data_dir (sqlite backend)"
    )
    quota_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=0,
        description="Maximum size of a single stored value (0 = unlimited)"
    )
    write_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for writes failing with transient OS errors"
    )

    @field_validator('data_dir')
    @classmethod
    def expand_data_dir(cls, v: Path) -> Path:
        """Expand ~ so the path is usable as-is."""
        return v.expanduser()


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_VAULT_LOG_",
        extra="ignore"
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum log level"
    )
    json_output: bool = Field(
        default=True,
        description="Render log lines as JSON (console renderer otherwise)"
    )

    @field_validator('level', mode='before')
    @classmethod
    def normalize_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Data safety
    quarantine_unreadable: bool = Field(
        default=True,
        description=(
            "Copy unparseable or unrecognized stored values aside before "
            "they can be overwritten by the next save"
        )
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an additional
    "<name>_error" entry for every group that failed to load.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "logging", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
