"""
Configuration Settings.

Settings are read from ``MAESTRO_*`` environment variables and an optional
``.env`` file in the working directory.
"""

import os
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the playbook CLI."""

    model_config = SettingsConfigDict(
        env_prefix="MAESTRO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    playbooks_dir: str = Field(
        default="~/.maestro/playbooks",
        description="Directory scanned by `maestro-playbook list`",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="simple",
        description="Log format (simple, detailed, json)",
    )
    default_cwd: str = Field(
        default_factory=os.getcwd,
        description="Working directory handed to actions when none is given",
    )


@lru_cache
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings()
