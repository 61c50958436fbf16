"""
Application settings.

Values come from environment variables prefixed with ``HOTEL_`` or from a
``.env`` file in the working directory.
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_prefix="HOTEL_",
        env_file=".env",
        extra="ignore",
    )

    APP_NAME: str = "Hotel Reservation API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./hotel.db"
    DATABASE_ECHO: bool = False
    CREATE_TABLES_ON_STARTUP: bool = True
    SEED_SAMPLE_DATA: bool = False

    # Security
    JWT_SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Reservations
    CONFIRMATION_PREFIX: str = "HTL"
    CURRENCY: str = "USD"
    # Reprice date amendments at the room's current base rate (True) or at
    # the rate captured when the reservation was booked (False)
    AMEND_USES_CURRENT_RATE: bool = True

    # Housekeeping
    CLEANING_TASK_DURATION_MINUTES: int = Field(default=60, ge=1)


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance"""
    return Settings()
