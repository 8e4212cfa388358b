"""
Setup 123 Engine Configuration
==============================
Centralized configuration management using Pydantic Settings.
Loads from environment variables with sensible defaults.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScanSettings(BaseSettings):
    """Batch scan job parameters."""

    model_config = SettingsConfigDict(env_prefix="SCAN_", env_file=".env", extra="ignore")

    default_timeframe: str = Field(default="1d", description="Timeframe label for scanned bars")

    # Instruments with fewer bars are skipped by the batch job
    min_candles: int = Field(
        default=100,
        description="Minimum bars per instrument before a scan is attempted"
    )

    @field_validator("min_candles")
    @classmethod
    def check_min_candles(cls, v: int) -> int:
        if v < 1:
            raise ValueError("min_candles must be >= 1")
        return v


class Settings(BaseSettings):
    """Main settings class aggregating all configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SETUP123_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Application Settings
    app_name: str = Field(default="Setup 123 Engine", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: str = Field(default="./logs", description="Directory for log files")

    # Sub-configurations
    scan: ScanSettings = Field(default_factory=ScanSettings)

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
