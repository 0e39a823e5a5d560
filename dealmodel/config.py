"""
Application configuration using Pydantic Settings.

Field names map directly to environment variables (e.g. ``LOG_LEVEL``,
``SENSITIVITY_MODE``); the env file is picked by ``APP_ENV``.
"""

import os
from functools import lru_cache
from pydantic_settings import BaseSettings


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "Deal Model"
    debug: bool = False
    app_env: str = "development"

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Reports
    workbook_creator: str = "Deal Model"
    default_deal_name: str = "Untitled Deal"
    # "linear" (approximation) or "exact" (re-underwrite every cell)
    sensitivity_mode: str = "linear"

    class Config:
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def exact_sensitivity(self) -> bool:
        return self.sensitivity_mode.lower() == "exact"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
