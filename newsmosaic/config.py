"""Configuration management for the mosaic service."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Tiling rules (packaged default document when unset)
    tiling_rules_path: Optional[str] = None

    # Layout defaults
    default_columns: int = Field(default=4, ge=1)
    container_width_px: float = 400
    max_search_rows: int = Field(default=100, ge=1)

    # Fixed seed for reproducible layouts (random per run when unset)
    random_seed: Optional[int] = None

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Application Settings
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value):
        level = str(value).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return level


def get_settings() -> Settings:
    """Get application settings.

    Loads settings from environment variables and the .env file.
    """
    return Settings()
