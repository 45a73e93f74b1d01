"""
Centralized Settings Management using Pydantic Settings
Runtime configuration (calibration defaults, logging) with environment variable support.
"""

import logging
from typing import Optional
from functools import lru_cache

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.
    Use a .env file for local development.
    """

    # Application
    APP_NAME: str = "SwingSense Motion Engine"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", description="Environment: development, staging, production")

    # Calibration
    PIXELS_PER_METER: float = Field(
        default=100.0,
        gt=0,
        description="Pixel-to-metric calibration used when the caller does not supply one"
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    LOG_JSON: bool = Field(default=False, description="Emit JSON log lines")
    LOG_FILE: Optional[str] = Field(default=None, description="Optional JSON log file path")

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.ENVIRONMENT.lower() == "production"

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "SWINGSENSE_",
        "case_sensitive": True,
        "extra": "ignore"
    }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Settings are loaded once per process.
    """
    return Settings()


settings = get_settings()
