"""Configuration management for the dispatch service."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Configuration
    api_port: int = Field(default=8000, description="API server port")
    api_host: str = Field(default="0.0.0.0", description="API server host")

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "text"] = Field(default="json", description="Log format")

    # Store Configuration
    store_backend: Literal["redis", "memory"] = Field(
        default="redis", description="Persistence backend for drivers and bookings"
    )
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis URL")
    commit_retries: int = Field(
        default=10, ge=1, description="Optimistic transaction attempts before giving up"
    )

    # Ride Sweeper Settings
    ride_duration_minutes: float = Field(
        default=5, gt=0, description="Rides older than this are force-completed"
    )
    sweep_interval_seconds: float = Field(
        default=60, gt=0, description="Delay between sweep cycles"
    )
    sweeper_enabled: bool = Field(default=True, description="Run the sweeper on startup")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
