"""
Type-safe configuration using Pydantic Settings
Validates environment variables and provides studio defaults
"""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class BookingConfig(BaseSettings):
    """
    Reservation engine configuration with validation
    Automatically loads from environment variables and .env file
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Database settings
    db_file: str = Field("bookings.db", description="SQLite database file path")
    database_url: Optional[str] = Field(
        None, description="Full SQLAlchemy URL, overrides db_file when set"
    )

    # Studio calendar
    timezone: str = Field("America/Chicago", description="Studio timezone (IANA name)")
    slot_minutes: int = Field(
        15, ge=1, le=240, description="Step between candidate start times"
    )
    same_day_cutoff_minutes: int = Field(
        0,
        ge=0,
        description="Minimum lead time for same-day reservations (0 disables)",
    )

    # Holds
    hold_ttl_minutes: int = Field(
        12, ge=1, le=120, description="Minutes a hold survives while payment is pending"
    )
    sweep_interval: int = Field(
        60,
        ge=5,
        le=3600,
        description="Interval in seconds between expired hold sweeps (default: 60)",
    )

    # Pricing (minor currency units)
    currency: str = Field("usd", min_length=3, max_length=3)
    credit_service_id: str = Field(
        "hbot", description="Service discounted by prepaid credits"
    )
    credit_price: int = Field(6000, ge=0, description="Discounted price when credits > 0")
    credit_pack_size: int = Field(10, ge=1, description="Credits added per pack grant")

    log_level: str = Field("INFO")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate the timezone is a known IANA zone"""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"TIMEZONE must be a valid IANA timezone, got {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"LOG_LEVEL must be a standard logging level, got {v!r}")
        return level

    def get_database_url(self) -> str:
        """Resolve the SQLAlchemy URL for the configured store"""
        return self.database_url or f"sqlite:///{self.db_file}"


# Singleton instance
_config: Optional[BookingConfig] = None


def get_config() -> BookingConfig:
    """
    Get or create the global configuration instance

    Returns:
        BookingConfig: Validated configuration

    Raises:
        ValidationError: If configuration is invalid
    """
    global _config
    if _config is None:
        _config = BookingConfig()
    return _config
