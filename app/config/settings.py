"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management for the rideshare API using Pydantic Settings.

A single cached Settings instance is shared by the whole application
(see get_settings()).

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

Security Considerations:
-----------------------
- Never commit .env files to version control
- Use a strong JWT_SECRET_KEY in production

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url


# Module logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Display name for the application
        app_env: Environment mode (development/staging/production)
        debug: Enable debug mode for verbose logging
        host: Server bind address
        port: Server port number
        database_url: SQLAlchemy database connection string
        jwt_secret_key: Secret key for JWT token signing
        jwt_algorithm: Algorithm for JWT signing (e.g., HS256)
        access_token_expire_minutes: Bearer token lifetime in minutes
        cors_origins: Allowed CORS origins (JSON array string)

    Example:
        >>> settings = Settings()
        >>> print(settings.app_name)
        'Rideshare API'
        >>> print(settings.app_env)
        'development'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="Rideshare API",
        description="Display name for the application"
    )

    app_env: str = Field(
        default="development",
        description="Environment mode: development, staging, production"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode for verbose logging"
    )

    # =========================================================================
    # SERVER SETTINGS
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Server bind address"
    )

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server port number"
    )

    # =========================================================================
    # DATABASE SETTINGS
    # =========================================================================
    database_url: str = Field(
        default="sqlite:///./storage/db/rideshare.db",
        description="SQLAlchemy database connection string"
    )

    # =========================================================================
    # JWT AUTHENTICATION SETTINGS
    # =========================================================================
    jwt_secret_key: str = Field(
        default="change-this-in-production",
        min_length=16,
        description="Secret key for JWT token signing"
    )

    jwt_algorithm: str = Field(
        default="HS256",
        description="Algorithm for JWT signing"
    )

    access_token_expire_minutes: int = Field(
        default=60,
        ge=1,
        le=1440,  # Max 24 hours
        description="Bearer token lifetime in minutes"
    )

    # =========================================================================
    # CORS SETTINGS
    # =========================================================================
    cors_origins: str = Field(
        default='["*"]',
        description="Allowed CORS origins as JSON array string"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, value: str) -> str:
        """
        Validate and normalize application environment.

        Unknown values fall back to 'development' with a warning.
        """
        valid_envs = {"development", "staging", "production"}
        normalized = value.lower().strip()

        if normalized not in valid_envs:
            logger.warning(
                f"Unknown environment '{value}', defaulting to 'development'"
            )
            return "development"

        return normalized

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, value: str) -> str:
        """
        Validate JWT algorithm is supported.

        Raises:
            ValueError: If algorithm is not an HMAC algorithm
        """
        supported = {"HS256", "HS384", "HS512"}

        if value.upper() not in supported:
            raise ValueError(
                f"Unsupported JWT algorithm: {value}. "
                f"Supported: {', '.join(sorted(supported))}"
            )

        return value.upper()

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def cors_origins_list(self) -> List[str]:
        """
        Parse CORS origins from JSON string to list.

        Returns:
            List of allowed origin strings
        """
        try:
            origins = json.loads(self.cors_origins)
            if isinstance(origins, list):
                return origins
            return ["*"]
        except json.JSONDecodeError:
            logger.warning(
                f"Invalid CORS origins JSON: {self.cors_origins}, "
                "defaulting to ['*']"
            )
            return ["*"]

    @property
    def access_token_expire_seconds(self) -> int:
        """Get access token expiry in seconds."""
        return self.access_token_expire_minutes * 60

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================
    def get_database_path(self) -> Optional[Path]:
        """
        Extract database file path for SQLite databases.

        Returns:
            Path to database file, or None for in-memory and non-SQLite URLs
        """
        url = make_url(self.database_url)

        if url.get_backend_name() != "sqlite":
            return None

        if not url.database or url.database == ":memory:":
            return None

        return Path(url.database)

    def ensure_directories(self) -> None:
        """Create the SQLite database directory if one is configured."""
        db_path = self.get_database_path()
        if db_path:
            db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.debug("Required directories created/verified")

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"debug={self.debug})"
        )


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance.

    Uses lru_cache so only one Settings instance is created
    throughout the application lifecycle.

    Returns:
        Global Settings instance
    """
    settings = Settings()

    settings.ensure_directories()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
