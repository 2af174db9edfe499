"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Tracker API")
    app_version: str = Field(default="1.0.0")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool | None = Field(
        default=None,
        description="Force JSON log rendering. Defaults to True in production.",
    )

    # Database
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/tracker",
        description="PostgreSQL connection URL with asyncpg driver",
    )

    # For testing with SQLite
    test_database_url: str = Field(
        default="sqlite+aiosqlite:///./test.db",
        description="Test database URL",
    )

    # Session JWT (bearer tokens issued at login)
    jwt_secret_key: str = Field(
        default="CHANGE-ME-IN-PRODUCTION",
        description="Secret key for session JWT signing",
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expire_minutes: int = Field(default=60 * 24)

    # Invitation tokens
    invitation_secret_key: str = Field(
        default="CHANGE-ME-TOO",
        description="Secret used to sign invitation tokens (keep distinct from jwt_secret_key)",
    )
    invitation_algorithm: str = Field(default="HS256")
    invitation_ttl_days: int = Field(default=7, ge=1)
    invitation_max_ttl_days: int = Field(default=30, ge=1)
    invite_base_url: str = Field(
        default="http://localhost:3000/dashboard/invitation",
        description="Landing page the invite link points at; the token is appended",
    )
    invitation_expiry_interval_seconds: int = Field(
        default=24 * 60 * 60,
        ge=60,
        description="How often pending invitations past their expiry are marked expired",
    )

    # Slugs
    slug_suffix_length: int = Field(
        default=6,
        ge=3,
        description="Random base-36 suffix length (36**6 ~ 2.2e9 values per name)",
    )
    slug_max_attempts: int = Field(default=5, ge=1)

    # Policy switches
    project_create_requires_team_manage: bool = Field(
        default=False,
        description="Require Team manage permission to create projects "
        "(off by default: any authenticated caller may create a project in a team)",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver scheme.

        Hosting providers usually supply a standard ``postgresql://`` URL.
        SQLAlchemy's async engine requires ``postgresql+asyncpg://``.
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable/disable rate limiting (disable for tests)",
    )
    rate_limit_default: str = Field(default="120/minute")
    rate_limit_storage_uri: str = Field(
        default="memory://",
        description="slowapi storage backend, e.g. redis://host:6379 when running several workers",
    )

    # Database pool (ignored for SQLite)
    db_pool_size: int = Field(default=5, ge=1)
    db_max_overflow: int = Field(default=10, ge=0)

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed origins",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
