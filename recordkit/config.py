"""
Configuration settings for recordkit.

Uses Pydantic Settings to load environment variables for the default data
source, logging, and record lifecycle defaults.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Data source
    database_url: str = Field("sqlite::memory:", alias="DATABASE_URL")
    connect_retries: int = Field(3, alias="CONNECT_RETRIES")

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Record lifecycle defaults
    auto_reload: bool = Field(True, alias="RECORD_AUTO_RELOAD")
    save_results: bool = Field(True, alias="RECORD_SAVE_RESULTS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
