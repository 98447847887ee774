"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (in-memory trip store when unset)
    database_url: str | None = None

    # Logging
    log_level: str = "INFO"

    # AI engine
    ai_engine_base_url: str = "http://localhost:8001"
    ai_engine_timeout_seconds: float = 30.0

    # AI engine resilience (0 retries keeps single-attempt accounting)
    ai_engine_retry_count: int = 0
    ai_engine_retry_backoff_ms: int = 1000
    ai_engine_breaker_failures: int = 5
    ai_engine_breaker_window_sec: int = 60
    ai_engine_breaker_half_open_sec: int = 30

    # Timetable service
    timetable_api_url: str = "http://localhost:8001/api/timetable"
    timetable_timeout_seconds: float = 15.0

    # LLM extraction
    openai_api_key: SecretStr | None = None
    openai_model: str = "gpt-4o-mini"

    # Conversation threads (seconds of inactivity before a thread expires)
    thread_session_ttl_seconds: int = 24 * 3600


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
