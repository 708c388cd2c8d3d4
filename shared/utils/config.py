"""
Configuration management using pydantic-settings.
Loads configuration from environment variables and .env file.
"""

from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application Configuration
    APP_NAME: str = "Provider Form Fill Engine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_TO_FILE: bool = False
    LOG_DIR: str = "logs"
    LOG_MAX_BYTES: int = 5_000_000
    LOG_BACKUP_COUNT: int = 3

    # Storage locations
    OUTPUT_DIR: str = "output/filled"
    TEMPLATES_DIR: str = "data/templates"

    # Spreadsheet field model
    SPREADSHEET_DEFAULT_COLUMNS: int = 10  # Used when the first sheet has no data
    SPREADSHEET_MAX_COLUMNS: int = 200
    SPREADSHEET_DATA_START_ROW: int = 2

    # Preview grid bounds
    PREVIEW_MAX_ROWS: int = 100
    PREVIEW_MAX_COLUMNS: int = 50

    # PDF required-field heuristic
    REQUIRED_FIELD_KEYWORDS: str = "required,mandatory,must,*"

    @property
    def required_field_keywords_list(self) -> list[str]:
        """Get required-field keywords as a list."""
        return [k.strip().lower() for k in self.REQUIRED_FIELD_KEYWORDS.split(",") if k.strip()]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
