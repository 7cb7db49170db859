"""Checker configuration."""

import logging
from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """
    Checker configuration.

    Loads configuration from environment variables.

    Environment variables (checked in order: prefixed, then plain):
    - RESOURCE_METRICS_PROJECT_ID or PROJECT_ID (default: "local-project")
    - RESOURCE_METRICS_STRICT_CATEGORIES or STRICT_CATEGORIES (default: true)
    """

    project_id: str = Field(
        default="local-project",
        validation_alias=AliasChoices("RESOURCE_METRICS_PROJECT_ID", "PROJECT_ID"),
    )
    strict_categories: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "RESOURCE_METRICS_STRICT_CATEGORIES",
            "STRICT_CATEGORIES",
        ),
    )

    model_config = SettingsConfigDict(
        env_file=None,  # Don't read .env files
        case_sensitive=False,
        extra="ignore",
        # Test runners pass their own argv
        cli_parse_args=False,
    )

    def __init__(self, **kwargs: Any):
        """Initialize config and log configuration."""
        super().__init__(**kwargs)

        mode_name = "STRICT" if self.strict_categories else "LENIENT"
        logging.info(f"Metric category validation: {mode_name}")
        logging.info(f"PROJECT_ID: {self.project_id}")


# Lazy initialization - built on first use
_config = None


def get_config() -> Config:
    """Return the process-wide configuration, loading it on first use."""
    global _config

    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next call re-reads the environment."""
    global _config
    _config = None


__all__ = ["Config", "get_config", "reset_config"]
