"""Settings management for MintMarket.

This module provides centralized configuration management for the MintMarket
application using Pydantic Settings with environment variable support and
validation.

The settings are organized into logical groups:
- APISettings: Core API configuration
- SecuritySettings: Token signing and security settings
- DatabaseSettings: Document store configuration
- MarketplaceSettings: Paging and ranking limits

Example:
    Basic usage:
        from mintmarket.core.settings import settings

        if settings.debug:
            print(f"Running {settings.project_name} v{settings.version}")

    Environment variables:
        API_DEBUG=true
        DB_BACKEND=mongo
        DB_URL=mongodb://localhost:27017
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class APISettings(BaseSettings):
    """API server configuration settings.

    Attributes:
        version: Application version string.
        prefix: API URL prefix (e.g., '/api').
        project_name: Human-readable project name.
        debug: Enable debug mode with verbose logging.
        host: Server bind address.
        port: Server bind port (1-65535).
        cors_origins: List of allowed CORS origins.
        log_dir: Directory receiving rotating JSON log files.

    Environment Variables:
        All attributes can be configured via environment variables with
        the 'API_' prefix (e.g., API_DEBUG, API_PORT).
    """

    version: str = Field(default="1.0.0", description="Application version string")
    prefix: str = Field(default="/api", description="API URL prefix")
    project_name: str = Field(
        default="MintMarket API", description="Human-readable project name"
    )
    debug: bool = Field(
        default=False, description="Enable debug mode with verbose logging"
    )
    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=8000, ge=1, le=65535, description="Server bind port")
    cors_origins: List[str] = Field(
        default=["*"], description="List of allowed CORS origins"
    )
    log_dir: str = Field(default="logs", description="Directory for log files")

    model_config = SettingsConfigDict(env_prefix="API_")


class SecuritySettings(BaseSettings):
    """Security and authentication configuration settings.

    Attributes:
        secret_key: Secret key used to sign access tokens.
        access_token_expire_minutes: Access token lifetime in minutes.
        jwt_algorithm: Signing algorithm for access tokens.

    Note:
        The default secret must be changed in production environments.
        The validator raises an error if it is used in non-debug mode.
    """

    secret_key: str = Field(
        default="change-me-in-production",
        description="Secret key for signing access tokens",
        validate_default=True,
    )
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7, ge=1, description="Access token lifetime in minutes"
    )
    jwt_algorithm: str = Field(default="HS256", description="Token signing algorithm")

    @field_validator("secret_key")
    def validate_not_default(cls, v: str, info) -> str:
        """Reject the placeholder secret outside of debug mode."""
        import os

        if (
            v == "change-me-in-production"
            and os.getenv("API_DEBUG", "true").lower() != "true"
        ):
            raise ValueError(f"{info.field_name} must be changed in production")
        return v

    model_config = SettingsConfigDict(env_prefix="SECURITY_")


class DatabaseSettings(BaseSettings):
    """Document store configuration settings.

    Attributes:
        backend: Store implementation, 'mongo' or 'memory'.
        url: MongoDB connection string.
        name: Database name.
        server_selection_timeout_ms: How long the driver waits for a server.

    Environment Variables:
        DB_BACKEND, DB_URL, DB_NAME, DB_SERVER_SELECTION_TIMEOUT_MS.

    Note:
        The 'memory' backend keeps everything in process and is meant for
        tests and local experiments only.
    """

    backend: Literal["mongo", "memory"] = Field(
        default="mongo", description="Document store implementation"
    )
    url: str = Field(
        default="mongodb://localhost:27017", description="MongoDB connection string"
    )
    name: str = Field(default="mintmarket", description="Database name")
    server_selection_timeout_ms: int = Field(
        default=5000, ge=1, description="Server selection timeout in milliseconds"
    )

    model_config = SettingsConfigDict(env_prefix="DB_")


class MarketplaceSettings(BaseSettings):
    """Paging and ranking limits for catalog and marketplace listings."""

    default_page_size: int = Field(default=12, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    user_search_page_size: int = Field(default=10, ge=1)
    trending_limit: int = Field(default=10, ge=1)
    recent_sales_limit: int = Field(default=10, ge=1)

    model_config = SettingsConfigDict(env_prefix="MARKET_")


class Settings(BaseSettings):
    """Composite settings container with nested configuration groups.

    Example:
        from mintmarket.core.settings import settings

        print(f"Server running on {settings.api.host}:{settings.api.port}")
        if settings.database.backend == "memory":
            print("Using the in-memory store")
    """

    api: APISettings = Field(default_factory=APISettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    marketplace: MarketplaceSettings = Field(default_factory=MarketplaceSettings)

    @property
    def debug(self) -> bool:
        """Get debug mode status from API settings."""
        return self.api.debug

    @property
    def version(self) -> str:
        """Get application version from API settings."""
        return self.api.version

    @property
    def prefix(self) -> str:
        """Get API URL prefix from API settings."""
        return self.api.prefix

    @property
    def project_name(self) -> str:
        """Get human-readable project name from API settings."""
        return self.api.project_name

    @property
    def cors_origins(self) -> List[str]:
        """Get CORS allowed origins from API settings."""
        return self.api.cors_origins

    @property
    def secret_key(self) -> str:
        """Get token signing key from security settings."""
        return self.security.secret_key

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance with environment variables loaded.

    Returns:
        Fully configured Settings instance with all nested configurations
        loaded from environment variables and defaults.
    """
    from dotenv import load_dotenv

    load_dotenv()
    return Settings()


# Global settings instance for convenient access throughout the application
settings = get_settings()
