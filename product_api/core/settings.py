# ==============================================================================
# SETTINGS CONFIGURATION - Environment Management
# ==============================================================================
# Pydantic Settings for type-safe environment variable management
# Selects the storage backend family once per process
# ==============================================================================

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SECRET_KEY = "your-super-secret-key-change-in-production"


class DatabaseType(str, Enum):
    """
    Supported storage backend families.

    Attributes:
        RELATIONAL: Normalized tables through SQLAlchemy (SQLite/PostgreSQL)
        KEYVALUE: Single-table composite-key store (MongoDB or in-memory)
    """
    RELATIONAL = "relational"
    KEYVALUE = "keyvalue"


class RelationalDialect(str, Enum):
    """SQL dialects the relational adapter can drive."""
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class KeyValueDriver(str, Enum):
    """Table implementations behind the key-value adapter."""
    MONGODB = "mongodb"
    MEMORY = "memory"


class Environment(str, Enum):
    """Application environment types."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """
    Application Settings Configuration.

    Manages all environment variables with type validation and defaults.
    Uses Pydantic BaseSettings for automatic .env file loading and
    environment variable parsing. An unknown DATABASE_TYPE fails
    validation, which keeps the process from starting.

    Example:
        >>> from product_api.core.settings import settings
        >>> settings.DATABASE_TYPE
        <DatabaseType.RELATIONAL: 'relational'>
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
        default="Product Catalog API",
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
    HOST: str = Field(
        default="0.0.0.0",
        description="Interface the development server binds to"
    )
    PORT: int = Field(
        default=3000,
        ge=1,
        le=65535,
        description="Network port the development server listens on"
    )

    # --------------------------------------------------------------------------
    # API CONFIGURATION
    # --------------------------------------------------------------------------
    API_PREFIX: str = Field(
        default="/api",
        description="Route prefix for all API endpoints"
    )
    API_TITLE: str = Field(
        default="Product Catalog API",
        description="OpenAPI documentation title"
    )
    API_DESCRIPTION: str = Field(
        default="Authentication, product CRUD and signed uploads over a pluggable storage backend",
        description="OpenAPI documentation description"
    )

    # --------------------------------------------------------------------------
    # STORAGE BACKEND SELECTION
    # --------------------------------------------------------------------------
    DATABASE_TYPE: DatabaseType = Field(
        default=DatabaseType.RELATIONAL,
        description="Active storage backend family (relational, keyvalue)"
    )

    # --------------------------------------------------------------------------
    # RELATIONAL CONFIGURATION
    # --------------------------------------------------------------------------
    RELATIONAL_DIALECT: RelationalDialect = Field(
        default=RelationalDialect.SQLITE,
        description="SQL dialect used by the relational backend"
    )
    SQLITE_URL: str = Field(
        default="sqlite:///./app.db",
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
        default="app_db",
        description="PostgreSQL database name"
    )

    # --------------------------------------------------------------------------
    # CONNECTION POOL SETTINGS
    # --------------------------------------------------------------------------
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
    DB_POOL_TIMEOUT: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Connection pool timeout in seconds"
    )
    DB_POOL_RECYCLE: int = Field(
        default=3600,
        ge=60,
        description="Connection recycle time in seconds"
    )

    # --------------------------------------------------------------------------
    # KEY-VALUE CONFIGURATION
    # --------------------------------------------------------------------------
    KEYVALUE_DRIVER: KeyValueDriver = Field(
        default=KeyValueDriver.MONGODB,
        description="Table implementation for the key-value backend"
    )
    KEYVALUE_TABLE_NAME: str = Field(
        default="app-data",
        description="Single table (collection) holding every record family"
    )
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017/?replicaSet=rs0",
        description="MongoDB connection URI (replica set required for transactions)"
    )
    MONGODB_DB: str = Field(
        default="app_db",
        description="MongoDB database name"
    )

    # --------------------------------------------------------------------------
    # OBJECT STORE (S3)
    # --------------------------------------------------------------------------
    AWS_REGION: str = Field(
        default="us-east-1",
        description="Region of the object store"
    )
    AWS_ACCESS_KEY_ID: Optional[str] = Field(
        default=None,
        description="Access key id (falls back to the boto3 credential chain)"
    )
    AWS_SECRET_ACCESS_KEY: Optional[str] = Field(
        default=None,
        description="Secret access key (falls back to the boto3 credential chain)"
    )
    S3_ENDPOINT_URL: Optional[str] = Field(
        default=None,
        description="Custom endpoint for S3-compatible stores"
    )
    S3_BUCKET_NAME: str = Field(
        default="app-uploads",
        description="Bucket receiving uploads"
    )
    S3_ACL: str = Field(
        default="public-read",
        description="Canned ACL applied to uploaded objects"
    )
    S3_SIGNED_URL_EXPIRATION: int = Field(
        default=3600,
        ge=1,
        le=604800,
        description="Lifetime of pre-signed upload URLs in seconds"
    )
    UPLOAD_DEFAULT_FOLDER: str = Field(
        default="general",
        description="Folder used when a request does not name one"
    )

    # --------------------------------------------------------------------------
    # SECURITY SETTINGS
    # --------------------------------------------------------------------------
    SECRET_KEY: str = Field(
        default=DEFAULT_SECRET_KEY,
        min_length=32,
        description="JWT and cursor signing secret key (min 32 chars)"
    )
    ALGORITHM: str = Field(
        default="HS256",
        description="JWT signing algorithm"
    )
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=1440,
        ge=1,
        le=43200,
        description="Access token expiration in minutes"
    )
    PASSWORD_HASH_ROUNDS: int = Field(
        default=10,
        ge=4,
        le=16,
        description="bcrypt work factor"
    )

    # --------------------------------------------------------------------------
    # RATE LIMITING
    # --------------------------------------------------------------------------
    RATE_LIMIT_ENABLED: bool = Field(
        default=True,
        description="Enable rate limiting"
    )
    RATE_LIMIT_REQUESTS: int = Field(
        default=100,
        ge=1,
        description="Maximum requests per client per window"
    )
    RATE_LIMIT_WINDOW: int = Field(
        default=900,
        ge=1,
        description="Fixed window length in seconds; counters reset when it elapses"
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
        pattern="^(text|json)$",
        description="Log format (json, text)"
    )

    # --------------------------------------------------------------------------
    # COMPUTED PROPERTIES
    # --------------------------------------------------------------------------
    @computed_field
    @property
    def postgres_url(self) -> str:
        """
        Construct PostgreSQL async connection URL.

        Returns:
            Async PostgreSQL connection string with asyncpg driver
        """
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:"
            f"{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:"
            f"{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @computed_field
    @property
    def sqlite_async_url(self) -> str:
        """
        Construct SQLite async connection URL.

        Returns:
            Async SQLite connection string with aiosqlite driver
        """
        if "aiosqlite" in self.SQLITE_URL:
            return self.SQLITE_URL
        return self.SQLITE_URL.replace("sqlite://", "sqlite+aiosqlite://")

    @computed_field
    @property
    def relational_url(self) -> str:
        """
        Get the async URL for the configured relational dialect.

        Raises:
            ValueError: If RELATIONAL_DIALECT is not supported
        """
        if self.RELATIONAL_DIALECT == RelationalDialect.SQLITE:
            return self.sqlite_async_url
        elif self.RELATIONAL_DIALECT == RelationalDialect.POSTGRESQL:
            return self.postgres_url
        raise ValueError(f"Unsupported relational dialect: {self.RELATIONAL_DIALECT}")

    # --------------------------------------------------------------------------
    # VALIDATORS
    # --------------------------------------------------------------------------
    @field_validator("SECRET_KEY")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Warn when the shipped default secret is in use."""
        if v == DEFAULT_SECRET_KEY:
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
