# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import get_settings
#   settings = get_settings()
#   app = create_app(settings)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# Settings are built once at startup and handed to every initializer.
# Nothing below the entry point reads os.environ directly.
# =============================================================================

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses pydantic-settings to:
    - Automatically load from .env file
    - Validate types and constraints
    - Provide sensible defaults for development
    """

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging)"
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level when DEBUG is off"
    )

    HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the server to"
    )

    PORT: int = Field(
        default=5000,
        ge=1,
        le=65535,
        description="Port for the server"
    )

    STATIC_DIR: Path = Field(
        default=APP_DIR / "public",
        description="Directory served as static assets"
    )

    TEMPLATES_DIR: Path = Field(
        default=APP_DIR / "views",
        description="Directory holding Jinja2 templates"
    )

    # -------------------------------------------------------------------------
    # Database Configuration
    # -------------------------------------------------------------------------
    # Required - the server refuses to start without it

    DATABASE_URL: str = Field(
        ...,
        description="SQLAlchemy async URL (e.g., postgresql+asyncpg://user:pw@host/db)"
    )

    DB_CONNECT_MAX_ATTEMPTS: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Attempts before the connection bootstrap gives up"
    )

    DB_CONNECT_BACKOFF_MULTIPLIER: float = Field(
        default=0.5,
        gt=0,
        description="Base of the exponential backoff, in seconds"
    )

    DB_CONNECT_BACKOFF_MAX: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound for a single backoff delay, in seconds"
    )

    DB_CONNECT_TIMEOUT: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for a single connection attempt, in seconds"
    )

    # -------------------------------------------------------------------------
    # Sessions & Authentication
    # -------------------------------------------------------------------------

    SESSION_SECRET_KEY: str = Field(
        ...,
        min_length=16,
        description="Key used to sign the session cookie"
    )

    SESSION_COOKIE_NAME: str = Field(
        default="session",
        description="Name of the session cookie"
    )

    SESSION_MAX_AGE_DAYS: int = Field(
        default=90,
        ge=1,
        description="Session cookie lifetime in days"
    )

    SESSION_HTTPS_ONLY: bool = Field(
        default=False,
        description="Only send the session cookie over HTTPS"
    )

    JWT_SECRET: str | None = Field(
        default=None,
        description="HS256 secret for bearer tokens (bearer auth disabled when unset)"
    )

    JWT_AUDIENCE: str = Field(
        default="authenticated",
        description="Expected 'aud' claim of bearer tokens"
    )

    # -------------------------------------------------------------------------
    # Security
    # -------------------------------------------------------------------------

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="*",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Rate Limiting & Slow Down
    # -------------------------------------------------------------------------

    RATE_LIMIT_PREFIX: str = Field(
        default="/u",
        description="Only paths under this prefix are rate limited"
    )

    RATE_LIMIT: str = Field(
        default="100/hour",
        description="Limit per client, in 'limits' notation"
    )

    RATE_LIMIT_MESSAGE: str = Field(
        default="Too many requests from this IP, please try again in an hour!",
        description="Body of the 429 response"
    )

    RATE_LIMIT_STORAGE_URI: str = Field(
        default="memory://",
        description="Storage backend for rate-limit counters (memory://, redis://...)"
    )

    SLOW_DOWN_WINDOW_MINUTES: int = Field(
        default=15,
        ge=1,
        description="Window for the slow-down counter"
    )

    SLOW_DOWN_AFTER: int = Field(
        default=100,
        ge=1,
        description="Requests per window served without delay"
    )

    SLOW_DOWN_DELAY_MS: int = Field(
        default=500,
        ge=0,
        description="Delay added to each request above the threshold"
    )

    # -------------------------------------------------------------------------
    # Body Parsing
    # -------------------------------------------------------------------------

    JSON_BODY_LIMIT_KB: int = Field(
        default=300,
        ge=1,
        description="Maximum JSON body size in KiB"
    )

    FORM_BODY_LIMIT_KB: int = Field(
        default=10,
        ge=1,
        description="Maximum URL-encoded body size in KiB"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://myapp.com" -> ["http://localhost:3000", "https://myapp.com"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def json_body_limit_bytes(self) -> int:
        return self.JSON_BODY_LIMIT_KB * 1024

    @property
    def form_body_limit_bytes(self) -> int:
        return self.FORM_BODY_LIMIT_KB * 1024

    @property
    def session_max_age_seconds(self) -> int:
        return self.SESSION_MAX_AGE_DAYS * 24 * 60 * 60

    @property
    def slow_down_window_seconds(self) -> int:
        return self.SLOW_DOWN_WINDOW_MINUTES * 60

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once.
    The entry point calls this and passes the result down explicitly.

    Returns:
        Settings: The application settings instance
    """
    return Settings()
