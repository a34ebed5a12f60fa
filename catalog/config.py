"""
Configuration and settings for the catalog service.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database (any SQLAlchemy URL; SQLite by default)
    database_url: str = Field(default="sqlite+pysqlite:///./catalog.db")
    stream_batch_size: int = Field(default=100, ge=1)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)
    environment: str = Field(default="development")

    # Repositories share one store per entity across requests. When False,
    # concurrent writers are not coordinated.
    serialize_writes: bool = Field(default=True)

    # Logging
    log_level: str = Field(default="INFO")
    log_requests: bool = Field(default=False)

    # Listener for `python -m catalog`
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = str(value).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @property
    def docs_enabled(self) -> bool:
        return self.environment.lower() == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
