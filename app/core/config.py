"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENVIRONMENT selects the runtime profile and which .env file to load
- Supports: development, test, staging, production
- Each environment may ship its own .env.{environment} file

Invalid configuration raises at import time; the process is expected to
refuse to start rather than serve with a half-valid config.
"""

from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import quote_plus

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


VALID_ENVIRONMENTS = ("development", "staging", "test", "production")
VALID_SSL_MODES = ("disable", "require", "verify-ca", "verify-full")

# Used outside production when JWT_SECRET is unset or too short
DEV_JWT_SECRET = "dev-secret-key-min-32-chars------"
MIN_JWT_SECRET_LENGTH = 32

APP_ENVIRONMENT = os.getenv("APP_ENVIRONMENT", "development").lower()

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "test": ".env.test",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_path = PROJECT_ROOT / ENV_FILE_MAP.get(APP_ENVIRONMENT, ".env.development")

# Production injects configuration through the environment only
if APP_ENVIRONMENT != "production" and _env_path.is_file():
    from dotenv import load_dotenv

    load_dotenv(_env_path, override=False)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    Pydantic Settings populates fields from environment variables; static type
    checkers still see required constructor arguments, hence the ignore.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_db_settings() -> "DatabaseSettings":
    return DatabaseSettings()  # type: ignore[call-arg]


def _build_jwt_settings() -> "JWTSettings":
    return JWTSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """Service-level configuration."""

    environment: str = Field(
        APP_ENVIRONMENT,
        description="Runtime profile: development, staging, test or production",
    )
    port: int = Field(
        8080,
        description="HTTP port the server listens on",
        ge=1,
        le=65535,
    )
    cors_allowed_origin: str | None = Field(
        None,
        description="Allowed CORS origin; defaults to '*' outside production",
    )
    auto_migrate: bool | None = Field(
        None,
        description="Create the schema on startup; defaults to true outside production",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )

    @field_validator("environment")
    @classmethod
    def _check_environment(cls, value: str) -> str:
        value = value.lower()
        if value not in VALID_ENVIRONMENTS:
            raise ValueError(
                f"invalid APP_ENVIRONMENT: must be one of: {', '.join(VALID_ENVIRONMENTS)}"
            )
        return value

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def should_auto_migrate(self) -> bool:
        if self.auto_migrate is None:
            return not self.is_production
        return self.auto_migrate

    @property
    def resolved_cors_origin(self) -> str | None:
        """Origin to advertise, or None to disable CORS headers entirely."""
        if self.cors_allowed_origin:
            return self.cors_allowed_origin
        return None if self.is_production else "*"


class DatabaseSettings(BaseSettings):
    """PostgreSQL connection configuration.

    ``url`` overrides every other field; it is how tests point the service at
    an in-memory SQLite database.
    """

    url: str | None = Field(
        None,
        description="Full SQLAlchemy URL, overrides host/port/user/password/name",
    )
    host: str = Field("localhost", min_length=1)
    port: int = Field(5432, ge=1, le=65535)
    user: str = Field("postgres", min_length=1)
    password: str = Field("postgres")
    name: str = Field("content_db", min_length=1)
    sslmode: str = Field("disable")
    pool_size: int = Field(
        5,
        description="Connections kept open in the pool",
        ge=1,
    )
    max_overflow: int = Field(
        20,
        description="Extra connections allowed above pool_size",
        ge=0,
    )
    pool_recycle_seconds: int = Field(
        300,
        description="Recycle connections older than this many seconds",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
    )

    @field_validator("sslmode")
    @classmethod
    def _check_sslmode(cls, value: str) -> str:
        if value not in VALID_SSL_MODES:
            raise ValueError(
                f"invalid DB_SSLMODE: must be one of: {', '.join(VALID_SSL_MODES)}"
            )
        return value

    def dsn(self) -> str:
        """Return the SQLAlchemy URL including credentials."""
        if self.url:
            return self.url
        return (
            f"postgresql+psycopg2://{quote_plus(self.user)}:{quote_plus(self.password)}"
            f"@{self.host}:{self.port}/{self.name}?sslmode={self.sslmode}"
        )

    def safe_dsn(self) -> str:
        """Return a loggable description of the target without the password."""
        if self.url:
            scheme = self.url.split("://", 1)[0]
            return f"{scheme}://..."
        return (
            f"host={self.host} port={self.port} user={self.user} "
            f"dbname={self.name} sslmode={self.sslmode}"
        )


class JWTSettings(BaseSettings):
    """Bearer token verification configuration."""

    secret: str = Field(
        "",
        description="HMAC secret used to sign and verify bearer tokens",
    )

    model_config = SettingsConfigDict(
        env_prefix="JWT_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        0,
        description="Rotate the log file at this size; 0 disables rotation",
        ge=0,
    )
    backup_count: int = Field(5, ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Cross-group rules live here:
    - production requires JWT_SECRET of at least 32 characters
    - other environments fall back to a fixed development secret
    """

    app: AppSettings = Field(default_factory=_build_app_settings)
    db: DatabaseSettings = Field(default_factory=_build_db_settings)
    jwt: JWTSettings = Field(default_factory=_build_jwt_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def _check_jwt_secret(self) -> "Settings":
        if len(self.jwt.secret) >= MIN_JWT_SECRET_LENGTH:
            return self
        if self.app.is_production:
            raise ValueError(
                f"invalid JWT_SECRET: must be >= {MIN_JWT_SECRET_LENGTH} chars in production"
            )
        self.jwt.secret = DEV_JWT_SECRET
        return self


# Global settings instance - composed from domain-specific settings
settings = Settings()
