"""
Library Settings

Centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with sensible defaults.

Configuration Categories:
=========================
- Application: environment name and log level
- Database: PostgreSQL endpoint, credentials and pool tuning

Environment Variables:
======================
Settings are loaded from environment variables or a .env file.
Environment variables take precedence over .env file values.

    DATABASE_URL takes precedence over the POSTGRES_* fields; the fields
    only fill what the URL leaves out.

Usage:
======
    from pgrepo.config.settings import settings

    config = settings.to_connection_config()
    await manager.connect(config)
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pgrepo.schemas.config import ConnectionConfig


class Settings(BaseSettings):
    """
    Settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Use a .env file for local development.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ═══════════════════════════════════════════════════════════════════════════════
    # APPLICATION
    # ═══════════════════════════════════════════════════════════════════════════════

    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ═══════════════════════════════════════════════════════════════════════════════
    # DATABASE
    # ═══════════════════════════════════════════════════════════════════════════════

    DATABASE_URL: Optional[str] = Field(
        default=None,
        description="Full PostgreSQL URL; parsed first, POSTGRES_* fill the gaps",
    )
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "postgres"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_SSL: Optional[bool] = None
    POSTGRES_SCHEMA: Optional[str] = Field(
        default=None,
        description="Schema placed first on the connection search_path",
    )

    DATABASE_POOL_SIZE: int = Field(
        default=10,
        description="Number of persistent connections in the pool",
    )
    DATABASE_MAX_OVERFLOW: int = Field(
        default=20,
        description="Extra connections allowed when pool is exhausted",
    )
    DATABASE_IDLE_TIMEOUT_MS: Optional[int] = Field(
        default=None,
        description="Maximum connection age before recycling (not idle eviction)",
    )
    DATABASE_CONNECT_TIMEOUT_MS: Optional[int] = Field(
        default=None,
        description="Timeout for opening a connection / waiting on the pool",
    )
    DATABASE_STATEMENT_TIMEOUT_MS: Optional[int] = Field(
        default=None,
        description="Server-side statement_timeout for every connection",
    )

    # ═══════════════════════════════════════════════════════════════════════════════
    # PROPERTIES
    # ═══════════════════════════════════════════════════════════════════════════════

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.APP_ENV == "development"

    def to_connection_config(self) -> ConnectionConfig:
        """
        Build a ConnectionConfig from the environment.

        Returns:
            ConnectionConfig ready to pass to SessionManager.connect()
        """
        return ConnectionConfig(
            connection_string=self.DATABASE_URL,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            database=self.POSTGRES_DB,
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            ssl=self.POSTGRES_SSL,
            db_schema=self.POSTGRES_SCHEMA,
            pool_size=self.DATABASE_POOL_SIZE,
            max_overflow=self.DATABASE_MAX_OVERFLOW,
            idle_timeout_millis=self.DATABASE_IDLE_TIMEOUT_MS,
            connection_timeout_millis=self.DATABASE_CONNECT_TIMEOUT_MS,
            statement_timeout_millis=self.DATABASE_STATEMENT_TIMEOUT_MS,
            echo=self.DEBUG,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Settings instance, loaded once per process
    """
    return Settings()


# Global settings instance for convenient import
settings = get_settings()
