"""Configuration settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    database_pool_size: int = 10
    database_max_overflow: int = 20

    # Redis (per-room booking leases)
    redis_url: str = "redis://localhost:6379/0"
    redis_lock_ttl_seconds: int = 10
    redis_lock_wait_seconds: float = 3.0

    # Payments
    stripe_secret_key: str = ""
    stripe_test_reference_prefix: str = "pi_test"
    payment_provider: str = "stripe"
    currency: str = "usd"

    # Cancellation policy
    full_refund_window_hours: int = 72

    # Hotel clock
    hotel_timezone: str = "UTC"

    # Background Jobs (hotel local time)
    occupancy_sweep_hour: int = 3
    occupancy_sweep_minute: int = 0
    completion_sweep_hour: int = 4
    completion_sweep_minute: int = 0

    # Logging
    log_level: str = "INFO"

    # Application
    app_name: str = "hotel-reservation-engine"
    environment: str = "development"


def load_settings() -> Settings:
    """Load and validate settings from environment."""
    return Settings()  # type: ignore[call-arg]
