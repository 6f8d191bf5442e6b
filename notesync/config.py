"""Configuration settings for the notesync backend."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars not in model
    )

    # Database
    # postgres:// URLs are normalized to postgresql+asyncpg:// in database.py
    database_url: str = "sqlite+aiosqlite:///./notesync.db"
    database_echo: bool = False

    # JWT (issued by the auth service; we only verify)
    jwt_secret_key: str  # Required - no default for security
    jwt_algorithm: str = "HS256"

    # Sync engine
    sync_requires_pro: bool = False
    sync_batch_size: int = 100
    pull_default_limit: int = 1000
    pull_max_limit: int = 5000
    transaction_timeout_seconds: float | None = 5.0

    # Rate limiting
    rate_limit_enabled: bool = True
    sync_rate_limit: str = "60/minute"
    status_rate_limit: str = "120/minute"
    trusted_proxy_cidrs: list[str] = [
        "10.0.0.0/8",  # Platform internal network
        "172.16.0.0/12",  # Docker/private
        "192.168.0.0/16",  # Local dev
        "127.0.0.0/8",  # Localhost
        "::1/128",  # IPv6 localhost
    ]

    # App
    debug: bool = False
    log_level: str = "INFO"
    # CORS: Allowed origins for cross-origin requests
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
