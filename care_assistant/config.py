"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_POSTGRES_URL = "postgresql://ca:ca@localhost:5432/care_assistant"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str | None = None
    postgres_url: str = DEFAULT_POSTGRES_URL

    # Connection pool
    db_echo: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Logging
    log_level: str = "INFO"

    @property
    def effective_database_url(self) -> str:
        """DATABASE_URL when set, otherwise the local Postgres default."""
        return self.database_url or self.postgres_url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
