"""
FastAPI application configuration using Pydantic Settings.

Provides centralized configuration for:
- Database connection (MongoDB)
- Authentication (JWT settings, password hashing)
- API settings (CORS, rate limiting)
- Bootstrap administrator account
- Document (PDF) rendering
- Security settings
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
    prefix "PORTAL_" (e.g., PORTAL_MONGODB_URL).

    Environment variables are loaded from:
    1. System environment
    2. .env file in the current directory
    3. Default values defined below
    """

    # =========================================================================
    # API Settings
    # =========================================================================

    app_name: str = Field(
        default="Invigilator Registration Portal",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="API version"
    )
    api_prefix: str = Field(
        default="/api",
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
        default="mongodb://localhost:27017",
        description="MongoDB connection URL"
    )
    mongodb_database: str = Field(
        default="invigilator_portal",
        description="MongoDB database name"
    )
    mongodb_server_selection_timeout_ms: int = Field(
        default=5000,
        description="Server selection timeout (milliseconds)",
        gt=0
    )
    mongodb_max_pool_size: int = Field(
        default=50,
        description="Max connections in the driver pool",
        gt=0,
        le=500
    )

    # =========================================================================
    # JWT Authentication Settings
    # =========================================================================

    jwt_secret_key: str = Field(
        default="change-this-secret-key-in-production-use-env-var-minimum-32-chars",
        description="Secret key for JWT token signing (MUST be changed in production)",
        min_length=32
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm (HS256, HS384, HS512)"
    )
    jwt_access_token_expire_minutes: int = Field(
        default=60,
        description="Access token expiration time in minutes",
        gt=0,
        le=1440  # Max 24 hours
    )
    jwt_cookie_name: str = Field(
        default="token",
        description="Cookie consulted when no Authorization header is sent"
    )

    # =========================================================================
    # Password Hashing Settings
    # =========================================================================

    password_bcrypt_rounds: int = Field(
        default=10,
        description="BCrypt hash rounds (higher = slower but more secure)",
        ge=4,
        le=14
    )
    password_min_length: int = Field(
        default=6,
        description="Minimum password length at signup",
        ge=1,
        le=128
    )

    # =========================================================================
    # Bootstrap Administrator
    # =========================================================================

    admin_email: Optional[str] = Field(
        default=None,
        description="Administrator account ensured at startup"
    )
    admin_password: Optional[str] = Field(
        default=None,
        description="Password for the bootstrap administrator"
    )
    admin_name: str = Field(
        default="Administrator",
        description="Display name for the bootstrap administrator"
    )

    # =========================================================================
    # CORS Settings
    # =========================================================================

    cors_enabled: bool = Field(
        default=True,
        description="Enable CORS middleware"
    )
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )
    cors_allow_credentials: bool = Field(
        default=True,
        description="Allow credentials (cookies, authorization headers) in CORS"
    )
    cors_allow_methods: List[str] = Field(
        default=["GET", "POST", "PUT", "OPTIONS"],
        description="Allowed HTTP methods"
    )
    cors_allow_headers: List[str] = Field(
        default=["*"],
        description="Allowed HTTP headers"
    )

    # =========================================================================
    # Rate Limiting Settings
    # =========================================================================

    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable rate limiting on login and signup"
    )
    rate_limit_auth: str = Field(
        default="10/minute",
        description="Rate limit applied to login and signup (slowapi syntax)"
    )
    rate_limit_storage_url: Optional[str] = Field(
        default=None,
        description="Redis URL for distributed rate limiting (optional)"
    )

    # =========================================================================
    # Security Settings
    # =========================================================================

    security_require_https: bool = Field(
        default=False,
        description="Send HSTS header (enable behind TLS in production)"
    )
    security_headers_enabled: bool = Field(
        default=True,
        description="Enable security headers (X-Frame-Options, etc.)"
    )
    security_hsts_max_age: int = Field(
        default=31536000,  # 1 year
        description="HSTS max age (seconds)"
    )

    # =========================================================================
    # Audit Logging Settings
    # =========================================================================

    audit_enabled: bool = Field(
        default=True,
        description="Enable audit logging"
    )

    # =========================================================================
    # Monitoring and Observability
    # =========================================================================

    metrics_enabled: bool = Field(
        default=True,
        description="Enable Prometheus metrics"
    )

    tracing_enabled: bool = Field(
        default=False,
        description="Enable OpenTelemetry tracing"
    )
    tracing_otlp_endpoint: str = Field(
        default="http://localhost:4318/v1/traces",
        description="OTLP/HTTP traces endpoint"
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

    pagination_default_limit: int = Field(
        default=10,
        description="Default page size for candidate listings",
        gt=0,
        le=1000
    )
    pagination_max_limit: int = Field(
        default=100,
        description="Maximum page size",
        gt=0,
        le=1000
    )

    # =========================================================================
    # Document (PDF) Settings
    # =========================================================================

    document_candidate_page_size: str = Field(
        default="legal",
        description="Page size for the candidate preview bundle: legal|a4"
    )
    document_admin_page_size: str = Field(
        default="a4",
        description="Page size for the admin document bundle: legal|a4"
    )
    document_margin_mm: float = Field(
        default=10.0,
        description="Page margin in millimetres",
        ge=0.0,
        le=50.0
    )
    document_section_gap_mm: float = Field(
        default=5.0,
        description="Vertical gap between sections in millimetres",
        ge=0.0,
        le=50.0
    )
    document_assets_dir: Optional[str] = Field(
        default=None,
        description="Directory holding starparth-logo.png, netparam-logo.png and netparam-logo-2.png"
    )
    document_image_timeout: float = Field(
        default=10.0,
        description="Timeout for fetching remote images (seconds)",
        gt=0.0
    )
    document_image_max_bytes: int = Field(
        default=5 * 1024 * 1024,
        description="Largest image accepted from a URL or data URI (bytes)",
        ge=1024
    )
    document_image_allowed_hosts: List[str] = Field(
        default_factory=list,
        description="When set, remote images are fetched only from these hosts"
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
            return ["*"]
        return v

    @field_validator("document_image_allowed_hosts")
    @classmethod
    def normalize_image_hosts(cls, v: List[str]) -> List[str]:
        """Host names compare case-insensitively."""
        return [host.strip().lower() for host in v if host.strip()]

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Validate JWT algorithm is a supported HMAC variant."""
        allowed = ["HS256", "HS384", "HS512"]
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

    @field_validator("document_candidate_page_size", "document_admin_page_size")
    @classmethod
    def validate_page_size(cls, v: str) -> str:
        """Validate document page size name."""
        allowed = ["legal", "a4"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"page size must be one of {allowed}, got: {v}")
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
    def bootstrap_admin_enabled(self) -> bool:
        """Both admin credentials are configured."""
        return bool(self.admin_email and self.admin_password)

    # =========================================================================
    # Model Config
    # =========================================================================

    model_config = SettingsConfigDict(
        env_prefix="PORTAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once and shared
    across the application. Settings are loaded from:
    1. Environment variables with PORTAL_ prefix
    2. .env file in the current directory
    3. Default values

    Returns:
        Settings: Cached settings instance

    Example:
        >>> from portal.src.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.mongodb_database)
        invigilator_portal
    """
    return Settings()


def clear_settings_cache():
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()
