"""
Centralized configuration management.
All environment variables and settings are defined here.
"""
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from creditlog.exceptions import ConfigurationError

DEFAULT_RATES_URL = "https://open.er-api.com/v6/latest/USD"


class Settings(BaseSettings):
    """Application settings loaded from CREDITLOG_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CREDITLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="INFO")

    # Currency rate provider
    rates_url: str = Field(default=DEFAULT_RATES_URL)
    rates_timeout: float = Field(default=10.0)

    # Document intake
    fallback_encoding: str = Field(default="windows-1254")
    max_workers: int = Field(default=4)

    # Classification
    rules_path: Optional[str] = Field(default=None)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v_upper

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Validate decode worker count."""
        if v < 1:
            raise ValueError("max_workers must be at least 1")
        if v > 64:
            raise ValueError("max_workers should not exceed 64")
        return v

    @field_validator("rates_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("rates_timeout must be positive")
        return v


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If an environment or .env value is invalid.
    """
    global _settings
    if _settings is None:
        try:
            _settings = Settings()
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration: {e}", {"error_count": e.error_count()}
            ) from e
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
