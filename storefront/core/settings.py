# ==============================================================================
# SETTINGS CONFIGURATION - Environment Management
# ==============================================================================
# Pydantic Settings for type-safe environment variable management
# Covers API, database, security, order lifecycle and notification options
# ==============================================================================

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseType(str, Enum):
    """
    Supported database types for the application.

    Attributes:
        SQLITE: Lightweight file-based database for development/testing
        POSTGRESQL: Production-grade relational database
    """
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class Environment(str, Enum):
    """Application environment types."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class NotificationBackend(str, Enum):
    """Available notification dispatchers."""
    LOG = "log"
    WEBHOOK = "webhook"


class Settings(BaseSettings):
    """
    Application Settings Configuration.

    Manages all environment variables with type validation and defaults.
    Uses Pydantic BaseSettings for automatic .env file loading and
    environment variable parsing.

    Example:
        >>> from storefront.core.settings import settings
        >>> settings.ORDER_CONFIRMATION_POLICY
        'deferred'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # --------------------------------------------------------------------------
    # APPLICATION SETTINGS
    # --------------------------------------------------------------------------
    APP_NAME: str = Field(
        default="Storefront Orders",
        description="Application display name"
    )
    APP_VERSION: str = Field(
        default="1.0.0",
        description="Application semantic version"
    )
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (logs, stack traces)"
    )
    ENVIRONMENT: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Current deployment environment"
    )

    # --------------------------------------------------------------------------
    # API CONFIGURATION
    # --------------------------------------------------------------------------
    API_V1_PREFIX: str = Field(
        default="/api/v1",
        description="API version 1 route prefix"
    )
    API_TITLE: str = Field(
        default="Storefront Orders API",
        description="OpenAPI documentation title"
    )
    API_DESCRIPTION: str = Field(
        default="Order placement, confirmation and fulfilment workflow",
        description="OpenAPI documentation description"
    )

    # --------------------------------------------------------------------------
    # DATABASE CONFIGURATION
    # --------------------------------------------------------------------------
    DATABASE_TYPE: DatabaseType = Field(
        default=DatabaseType.SQLITE,
        description="Active database backend (sqlite, postgresql)"
    )
    SQLITE_URL: str = Field(
        default="sqlite:///./storefront.db",
        description="SQLite database file path"
    )
    POSTGRES_HOST: str = Field(
        default="localhost",
        description="PostgreSQL server hostname"
    )
    POSTGRES_PORT: int = Field(
        default=5432,
        ge=1,
        le=65535,
        description="PostgreSQL server port"
    )
    POSTGRES_USER: str = Field(
        default="postgres",
        description="PostgreSQL username"
    )
    POSTGRES_PASSWORD: str = Field(
        default="password",
        description="PostgreSQL password"
    )
    POSTGRES_DB: str = Field(
        default="storefront",
        description="PostgreSQL database name"
    )
    DB_POOL_SIZE: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Database connection pool size"
    )
    DB_MAX_OVERFLOW: int = Field(
        default=20,
        ge=0,
        le=100,
        description="Maximum overflow connections beyond pool size"
    )
    DB_POOL_RECYCLE: int = Field(
        default=3600,
        ge=60,
        description="Connection recycle time in seconds"
    )

    # --------------------------------------------------------------------------
    # SECURITY SETTINGS
    # --------------------------------------------------------------------------
    SECRET_KEY: str = Field(
        default="your-super-secret-key-change-in-production",
        min_length=32,
        description="JWT signing secret key (min 32 chars)"
    )
    ALGORITHM: str = Field(
        default="HS256",
        description="JWT signing algorithm"
    )
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=30,
        ge=1,
        le=1440,
        description="Access token expiration in minutes"
    )

    # --------------------------------------------------------------------------
    # ORDER LIFECYCLE
    # --------------------------------------------------------------------------
    ORDER_CONFIRMATION_POLICY: str = Field(
        default="deferred",
        pattern="^(immediate|deferred)$",
        description="Checkout policy: pay and reserve stock now, or wait for email confirmation"
    )
    ORDER_CONFIRMATION_WINDOW_HOURS: int = Field(
        default=24,
        ge=1,
        le=720,
        description="Hours a confirmation link stays valid after order creation"
    )
    ORDER_EXPIRY_SWEEP_ENABLED: bool = Field(
        default=False,
        description="Periodically cancel unconfirmed orders past the window"
    )
    ORDER_EXPIRY_SWEEP_INTERVAL_SECONDS: int = Field(
        default=300,
        ge=5,
        description="Seconds between expiry sweeps"
    )
    TRACKING_NUMBER_PREFIX: str = Field(
        default="TRK",
        min_length=1,
        max_length=10,
        description="Prefix for generated tracking numbers"
    )
    MOCK_PAYMENT_EMAIL: str = Field(
        default="mock@payment.com",
        description="Payer email recorded on synthesized payment results"
    )

    # --------------------------------------------------------------------------
    # NOTIFICATIONS
    # --------------------------------------------------------------------------
    NOTIFICATION_BACKEND: NotificationBackend = Field(
        default=NotificationBackend.LOG,
        description="Notification dispatcher (log, webhook)"
    )
    NOTIFICATION_WEBHOOK_URL: Optional[str] = Field(
        default=None,
        description="Endpoint receiving notification payloads when backend is webhook"
    )
    NOTIFICATION_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for a single notification delivery attempt"
    )
    FRONTEND_URL: str = Field(
        default="http://localhost:5173",
        description="Storefront base URL used in confirmation and tracking links"
    )

    # --------------------------------------------------------------------------
    # CORS SETTINGS
    # --------------------------------------------------------------------------
    CORS_ORIGINS: List[str] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(
        default=True,
        description="Allow credentials in CORS requests"
    )

    # --------------------------------------------------------------------------
    # LOGGING CONFIGURATION
    # --------------------------------------------------------------------------
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    LOG_FORMAT: str = Field(
        default="text",
        pattern="^(json|text)$",
        description="Log format (json, text)"
    )

    # --------------------------------------------------------------------------
    # COMPUTED PROPERTIES
    # --------------------------------------------------------------------------
    @computed_field
    @property
    def postgres_url(self) -> str:
        """Async PostgreSQL connection string with the asyncpg driver."""
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:"
            f"{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:"
            f"{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @computed_field
    @property
    def sqlite_async_url(self) -> str:
        """Async SQLite connection string with the aiosqlite driver."""
        if "aiosqlite" in self.SQLITE_URL:
            return self.SQLITE_URL
        return self.SQLITE_URL.replace("sqlite://", "sqlite+aiosqlite://")

    @computed_field
    @property
    def database_url(self) -> str:
        """
        Get the appropriate database URL based on DATABASE_TYPE.

        Returns:
            Async database connection URL for the selected database type

        Raises:
            ValueError: If DATABASE_TYPE is not supported
        """
        if self.DATABASE_TYPE == DatabaseType.SQLITE:
            return self.sqlite_async_url
        elif self.DATABASE_TYPE == DatabaseType.POSTGRESQL:
            return self.postgres_url
        raise ValueError(f"Unsupported database type: {self.DATABASE_TYPE}")

    @computed_field
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == Environment.PRODUCTION

    # --------------------------------------------------------------------------
    # VALIDATORS
    # --------------------------------------------------------------------------
    @field_validator("SECRET_KEY")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Warn when the default SECRET_KEY is in use."""
        if v == "your-super-secret-key-change-in-production":
            import warnings
            warnings.warn(
                "Using default SECRET_KEY. Generate a secure key for production!",
                UserWarning
            )
        return v

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            if v == "*":
                return ["*"]
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("FRONTEND_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Uses lru_cache to ensure settings are only loaded once,
    providing a singleton-like behavior for the settings object.
    """
    return Settings()


# Module-level settings instance for convenient imports
settings = get_settings()
