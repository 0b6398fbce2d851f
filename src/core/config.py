"""Application configuration using pydantic-settings."""
from datetime import timedelta
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database (system of record for user sessions)
    database_url: str

    # Redis (session cache)
    redis_url: str = "redis://localhost:6379"
    redis_enabled: bool = True

    # Session cache behaviour
    session_cache_ttl_seconds: int = Field(default=900, gt=0)
    session_cache_key_prefix: str = ""
    session_coalesce_misses: bool = True

    log_level: str = "INFO"

    @property
    def session_cache_ttl(self) -> timedelta:
        """Cache time-to-live as a timedelta."""
        return timedelta(seconds=self.session_cache_ttl_seconds)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
