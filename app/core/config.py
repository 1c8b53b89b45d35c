from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Database
    db_path: str = "bloomhabit.db"

    # Auth
    secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    # OpenAI (AI gardener falls back to canned text when unset)
    openai_api_key: str | None = None
    openai_model: str = "gpt-3.5-turbo"

    # Cache and queues
    cache_ttl_seconds: int = 300
    queue_max_attempts: int = 3
    queue_backoff_seconds: float = 2.0
    queue_keep_completed: int = 100
    queue_keep_failed: int = 50

    # Monitoring
    monitoring_enabled: bool = True
    health_check_enabled: bool = True

    # Scheduled jobs
    garden_check_hour: int = 1
    integration_sync_interval_minutes: int = 60

    # Optional settings
    default_language: str = "en"
    tz: str = "Europe/London"
    log_level: str = "INFO"
    debug: bool = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
