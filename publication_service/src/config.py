"""
FastAPI application configuration using Pydantic Settings.

Provides centralized configuration for:
- Database connections (MongoDB)
- Authentication (JWT validation settings)
- Blob storage for subject photos (S3-compatible / MinIO)
- API settings (CORS, pagination)
- Logging and monitoring

All settings support environment variable overrides and .env file loading.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import List, Optional
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables with the
    prefix "PUBLICATION_API_" (e.g., PUBLICATION_API_MONGODB_URL).

    Environment variables are loaded from:
    1. System environment
    2. .env file in the current directory
    3. Default values defined below
    """

    # =========================================================================
    # API Settings
    # =========================================================================

    app_name: str = Field(
        default="LostAndFound Publication Service",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="API version"
    )
    api_prefix: str = Field(
        default="/api/v1",
        description="API URL prefix"
    )

    debug: bool = Field(
        default=False,
        description="Debug mode - enables verbose logging and error traces"
    )
    environment: str = Field(
        default="production",
        description="Environment: development|staging|production"
    )

    host: str = Field(
        default="0.0.0.0",
        description="API bind host"
    )
    port: int = Field(
        default=8000,
        description="API bind port",
        gt=0,
        lt=65536
    )

    # =========================================================================
    # Database Settings (MongoDB)
    # =========================================================================

    mongodb_url: str = Field(
        default="mongodb://mongo:27017",
        description="MongoDB connection URL"
    )
    mongodb_database: str = Field(
        default="LostAndFoundPublicationService",
        description="MongoDB database name"
    )
    mongodb_publications_collection: str = Field(
        default="publications",
        description="Collection holding publication documents"
    )
    mongodb_categories_collection: str = Field(
        default="categories",
        description="Collection holding subject categories"
    )
    mongodb_server_selection_timeout_ms: int = Field(
        default=5000,
        description="Server selection timeout (milliseconds)",
        gt=0
    )

    # =========================================================================
    # JWT Authentication Settings
    # =========================================================================

    jwt_secret_key: str = Field(
        default="change-this-secret-key-in-production-use-vault-or-env-var-minimum-32-chars",
        description="Secret key used to verify access tokens (shared with the auth service)",
        min_length=32
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm (HS256, HS384, HS512, RS256, etc.)"
    )
    jwt_issuer: Optional[str] = Field(
        default="lostandfound-auth-service",
        description="Expected JWT issuer claim (None disables the check)"
    )
    jwt_audience: Optional[str] = Field(
        default="lostandfound-services",
        description="Expected JWT audience claim (None disables the check)"
    )

    # =========================================================================
    # Blob Storage Settings (S3-compatible)
    # =========================================================================

    blob_storage_endpoint: str = Field(
        default="http://minio:9000",
        description="S3-compatible endpoint URL"
    )
    blob_storage_access_key: str = Field(
        default="minio_access_key",
        description="Storage access key"
    )
    blob_storage_secret_key: str = Field(
        default="minio_secret_key",
        description="Storage secret key"
    )
    blob_storage_region: str = Field(
        default="us-east-1",
        description="Storage region"
    )
    blob_storage_bucket: str = Field(
        default="publication-photos",
        description="Bucket holding publication photos"
    )
    blob_storage_public_url: Optional[str] = Field(
        default=None,
        description="Base URL used in photo links (defaults to endpoint/bucket)"
    )

    # =========================================================================
    # CORS Settings
    # =========================================================================

    cors_enabled: bool = Field(
        default=True,
        description="Enable CORS middleware"
    )
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:19006"],
        description="Allowed CORS origins (web and mobile dev servers)"
    )
    cors_allow_credentials: bool = Field(
        default=True,
        description="Allow credentials (cookies, authorization headers) in CORS"
    )
    cors_allow_methods: List[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        description="Allowed HTTP methods"
    )
    cors_allow_headers: List[str] = Field(
        default=["*"],
        description="Allowed HTTP headers"
    )
    cors_expose_headers: List[str] = Field(
        default=["X-Pagination", "X-Correlation-ID"],
        description="Response headers readable by browsers"
    )

    # =========================================================================
    # Rate Limiting
    # =========================================================================

    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable rate limiting"
    )
    rate_limit_requests: int = Field(
        default=100,
        description="Max requests per window",
        gt=0,
        le=10000
    )
    rate_limit_window: int = Field(
        default=60,
        description="Rate limit window (seconds)",
        gt=0,
        le=3600
    )

    # =========================================================================
    # Security Settings
    # =========================================================================

    security_require_https: bool = Field(
        default=False,
        description="Require HTTPS for all requests (enable in production)"
    )
    security_headers_enabled: bool = Field(
        default=True,
        description="Enable security headers (X-Frame-Options, etc.)"
    )
    security_hsts_max_age: int = Field(
        default=31536000,  # 1 year
        description="HSTS max age (seconds)"
    )
    security_max_photo_size: int = Field(
        default=10 * 1024 * 1024,  # 10 MB
        description="Maximum subject photo size in bytes",
        gt=0
    )

    # =========================================================================
    # Monitoring and Observability
    # =========================================================================

    metrics_enabled: bool = Field(
        default=True,
        description="Enable Prometheus metrics"
    )
    metrics_endpoint: str = Field(
        default="/metrics",
        description="Metrics endpoint path"
    )

    tracing_enabled: bool = Field(
        default=False,
        description="Enable OpenTelemetry tracing"
    )
    tracing_otlp_endpoint: str = Field(
        default="http://otel-collector:4317",
        description="OTLP gRPC collector endpoint"
    )
    tracing_sample_rate: float = Field(
        default=0.1,
        description="Trace sampling rate (0.0-1.0, where 1.0 = 100%)",
        ge=0.0,
        le=1.0
    )

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level: DEBUG|INFO|WARNING|ERROR|CRITICAL"
    )
    log_format: str = Field(
        default="json",
        description="Log format: json|text"
    )

    # =========================================================================
    # Pagination Settings
    # =========================================================================

    pagination_default_page_size: int = Field(
        default=20,
        description="Default page size",
        gt=0,
        le=100
    )
    pagination_max_page_size: int = Field(
        default=50,
        description="Maximum page size",
        gt=0,
        le=1000
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got: {v}")
        return v_upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed = ["development", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"environment must be one of {allowed}, got: {v}")
        return v_lower

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: List[str]) -> List[str]:
        """Validate CORS origins are not empty."""
        if not v:
            return ["*"]  # Allow all if not specified (dev only)
        return v

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Validate JWT algorithm is supported."""
        allowed = ["HS256", "HS384", "HS512", "RS256", "RS384", "RS512"]
        if v not in allowed:
            raise ValueError(f"jwt_algorithm must be one of {allowed}, got: {v}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        allowed = ["json", "text"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got: {v}")
        return v_lower

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def blob_base_url(self) -> str:
        """Base URL that uploaded blob names are appended to."""
        if self.blob_storage_public_url:
            return self.blob_storage_public_url.rstrip("/")
        return f"{self.blob_storage_endpoint.rstrip('/')}/{self.blob_storage_bucket}"

    # =========================================================================
    # Model Config
    # =========================================================================

    model_config = SettingsConfigDict(
        env_prefix="PUBLICATION_API_",  # Environment variable prefix
        env_file=".env",                 # Load from .env file
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",                  # Ignore extra environment variables
        validate_default=True,           # Validate default values
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once and shared
    across the application. Settings are loaded from:
    1. Environment variables with PUBLICATION_API_ prefix
    2. .env file in the current directory
    3. Default values

    Returns:
        Settings: Cached settings instance

    Example:
        >>> from publication_service.src.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.mongodb_database)
        LostAndFoundPublicationService
    """
    return Settings()


# Convenience function to clear settings cache (useful for testing)
def clear_settings_cache():
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()
