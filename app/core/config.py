"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "placement_tracker"
    mongodb_timeout_ms: int = 5000
    students_collection: str = "students"

    # Validation bounds (batch years run from min_batch_year to current year + max_future_years)
    min_batch_year: int = 2010
    max_future_years: int = 5

    # Dashboard
    default_page_size: int = 10
    max_page_size: int = 100

    # App
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"
    debug: bool = False

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
