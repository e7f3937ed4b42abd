"""
Environment configuration for the hostel booking engine.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application configuration
    APP_NAME: str = "Hostel Booking Engine"
    API_VERSION: str = "v1"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Database configuration
    DATABASE_URL: str = "sqlite:///./hostel_booking.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_POOL_OVERFLOW: int = 10
    DB_CONNECT_ARGS: Dict[str, object] = Field(default_factory=dict)
    SLOW_QUERY_SECONDS: float = 0.5

    # Monitoring and logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_JSON: bool = True
    SENTRY_DSN: Optional[str] = None

    # Payment gateway
    CURRENCY: str = "INR"
    RAZORPAY_KEY_ID: Optional[str] = None
    RAZORPAY_KEY_SECRET: Optional[str] = None
    PAYMENT_CAPTURE_CHECK: bool = False
    GATEWAY_MAX_RETRIES: int = 3
    GATEWAY_RETRY_BASE_DELAY: float = 0.5
    GATEWAY_RETRY_MAX_DELAY: float = 8.0

    # Business logic
    BOOKING_REFERENCE_PREFIX: str = "RV"
    BOOKING_REFERENCE_ATTEMPTS: int = 5
    BOOKING_CONFIRMATION_WINDOW_HOURS: int = 48
    BOOKING_PAYMENT_WINDOW_HOURS: int = 72
    CHECK_IN_GRACE_DAYS: int = 3
    EXPIRY_SWEEP_INTERVAL_SECONDS: int = 300

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lower-case level names from the environment"""
        return v.upper()

    @field_validator(
        "GATEWAY_MAX_RETRIES",
        "BOOKING_REFERENCE_ATTEMPTS",
        "BOOKING_CONFIRMATION_WINDOW_HOURS",
        "BOOKING_PAYMENT_WINDOW_HOURS",
    )
    @classmethod
    def require_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("CHECK_IN_GRACE_DAYS")
    @classmethod
    def require_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must not be negative")
        return v

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
