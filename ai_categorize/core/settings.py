"""Configuration and environment settings for the Firefly AI categorizer."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for the Firefly AI categorizer."""

    firefly_url: str
    firefly_personal_token: str
    firefly_tag: str = "AI categorized"
    firefly_history_limit: int = 5
    firefly_category_cache_ttl: int = 300
    firefly_timeout: float | None = None
    groq_api_key: str
    llm_model: str = "llama-3.3-70b-versatile"
    llm_temperature: float = 0.1
    llm_max_completion_tokens: int = 200
    searxng_url: str | None = None
    searxng_timeout_ms: int = 3000
    database_url: str = "sqlite:///data/cache.db"
    server_host: str = "127.0.0.1"
    server_port: int = 3000
    log_level: str = "INFO"
    log_file: str | None = None
    worker_enabled: bool = True
    worker_poll_interval: float = 1.0
    worker_drain_delay: float = 0.0
    max_retries: int = 3

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("firefly_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Drop the trailing slash so API paths can be appended directly."""
        return value.rstrip("/")

    @field_validator("searxng_url")
    @classmethod
    def empty_searxng_is_disabled(cls, value: str | None) -> str | None:
        """Treat an empty SEARXNG_URL as not configured."""
        return value or None


def get_settings() -> "Settings":
    """Return an instance of the application settings."""
    return Settings()
