"""Application settings using Pydantic for environment-based configuration."""
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Redis Configuration
    redis_url: str = Field(
        default="redis://localhost:6379/0", description="Redis connection URL"
    )
    redis_socket_timeout: float = Field(
        default=5.0, description="Redis socket timeout (seconds)"
    )
    redis_max_connections: int = Field(
        default=50, description="Max connections in the Redis pool"
    )

    # Ledger Transactions
    ledger_max_retries: int = Field(
        default=5, ge=1, description="Attempts per optimistic transaction before aborting"
    )
    ledger_retry_base_delay: float = Field(
        default=0.01, ge=0, description="Base delay for conflict retry backoff (seconds)"
    )
    ledger_retry_max_delay: float = Field(
        default=0.5, ge=0, description="Upper bound for conflict retry backoff (seconds)"
    )

    # Catalog
    seed_catalog_on_startup: bool = Field(
        default=True, description="Seed the default catalog when it is empty"
    )

    # Application Configuration
    app_name: str = Field(default="storefront-ledger", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
