"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Allow extra env vars without failing
    )

    # App
    app_name: str = "Salon Manager"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_prefix: str = "/api"
    # Default for local frontend; override via ALLOWED_ORIGINS env for cloud
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Database. Left unset the store is treated as unconfigured and every
    # data endpoint answers with a "Database not configured" envelope.
    database_url: Optional[str] = None
    database_pool_size: int = 5
    database_max_overflow: int = 10
    create_tables_on_startup: bool = True

    # Auth. Secret key MUST be provided via environment (e.g. SECRET_KEY in .env)
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 180
    auth_cookie_name: str = "auth-token"
    auth_cookie_secure: bool = False

    # Default admin, seeded on startup when a password is provided
    admin_username: str = "admin"
    admin_password: Optional[str] = None
    admin_name: str = "Administrator"

    # Loyalty: number of paid visits after which the next one is free
    loyalty_threshold: int = 3

    # Event bus
    event_bus_maxsize: int = 1000


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
