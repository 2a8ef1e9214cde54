# python
# app/core/config.py
"""Configuration settings for the Mini Drive Storage API.

Uses Pydantic BaseSettings for environment variable management.
"""
import secrets
from enum import Enum

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentEnum(str, Enum):
    development = "development"
    testing = "testing"
    staging = "staging"
    production = "production"


class LogLevelEnum(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormatEnum(str, Enum):
    simple = "simple"
    json = "json"


class DownloadExecutorEnum(str, Enum):
    local = "local"
    celery = "celery"


class Settings(BaseSettings):
    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===== Application Settings =====
    app_name: str = Field(default="Mini Drive Storage API", description="Application name")
    environment: EnvironmentEnum = Field(
        default=EnvironmentEnum.development, description="Environment type"
    )
    debug: bool = Field(default=False, description="Debug mode")
    version: str = Field(default="1.0.0", description="Application version")
    api_prefix: str = Field(default="/api/v1", description="Prefix for all API routes")

    # ===== Security Settings =====
    secret_key: str = Field(
        default_factory=lambda: secrets.token_urlsafe(32),
        description="Secret key for JWT encoding",
    )
    algorithm: str = Field(default="HS256", description="JWT algorithm")
    access_token_expire_minutes: int = Field(default=60, description="JWT token expiration time")

    # ===== Database Settings =====
    database_url: str | None = Field(default=None, description="Database connection URL")
    db_pool_size: int = Field(default=20, description="Database connection pool size")
    db_max_overflow: int = Field(default=0, description="Database max overflow connections")

    # Test database URL
    test_database_url: str | None = Field(default=None, description="Test database URL")

    # ===== File Storage Settings =====
    storage_location: str = Field(default="./storage", description="Root directory of the blob store")
    default_storage_quota: int = Field(
        default=10 * 1024 * 1024 * 1024, description="Storage quota for new users in bytes (10GB)"
    )
    max_file_size: int = Field(
        default=1024 * 1024 * 1024, description="Maximum size of a single upload in bytes (1GB)"
    )

    # ===== Folder Downloads =====
    download_executor: DownloadExecutorEnum = Field(
        default=DownloadExecutorEnum.local,
        description="Where archive jobs run: in-process worker pool or Celery workers",
    )
    archive_max_concurrent_jobs: int = Field(
        default=4, description="Maximum archive jobs building at the same time"
    )
    archive_job_timeout: int = Field(default=15 * 60, description="Archive job timeout in seconds")
    stuck_download_threshold_minutes: int = Field(
        default=60, description="Age after which a non-terminal download is failed by the watchdog"
    )

    # ===== Retention =====
    cleanup_retention_days: int = Field(
        default=30, description="Days a soft-deleted item is kept before it is purged"
    )
    cleanup_batch_size: int = Field(default=100, description="Items purged per batch")
    cleanup_hour: int = Field(default=2, description="UTC hour of the daily purge")
    cleanup_minute: int = Field(default=0, description="UTC minute of the daily purge")

    # ===== Background Tasks (Celery) =====
    celery_broker_url: str = Field(
        default="redis://localhost:6379/1", description="Celery broker URL"
    )
    celery_result_backend: str = Field(
        default="redis://localhost:6379/2", description="Celery result backend"
    )

    # ===== CORS Settings =====
    allowed_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        description="Allowed CORS origins (comma-separated)",
    )

    @property
    def allowed_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        if isinstance(self.allowed_origins, str):
            return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]
        return self.allowed_origins if isinstance(self.allowed_origins, list) else []

    # ===== Email Configuration =====
    smtp_host: str | None = Field(default=None, description="SMTP host")
    smtp_port: int = Field(default=587, description="SMTP port")
    smtp_user: str | None = Field(default=None, description="SMTP username")
    smtp_password: str | None = Field(default=None, description="SMTP password")
    email_from: str | None = Field(default=None, description="Email from address")

    # ===== Monitoring & Logging =====
    log_level: LogLevelEnum = Field(default=LogLevelEnum.INFO, description="Logging level")
    log_format: LogFormatEnum = Field(default=LogFormatEnum.json, description="Log format")

    # ===== Server Settings =====
    host: str = Field(default="127.0.0.1", description="Host to bind the server")
    port: int = Field(default=8000, description="Port to bind the server")
    reload: bool = Field(default=False, description="Auto-reload in development")

    # ===== Computed Properties =====
    @property
    def is_development(self) -> bool:
        return self.environment == EnvironmentEnum.development

    @property
    def is_production(self) -> bool:
        return self.environment == EnvironmentEnum.production

    @property
    def is_testing(self) -> bool:
        return self.environment == EnvironmentEnum.testing

    @property
    def has_email(self) -> bool:
        return bool(self.smtp_host and self.smtp_user)

    # ===== Validation Methods =====
    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        if v and isinstance(v, str):
            lv = v.lower()
            if lv in ["dev", "develop"]:
                return "development"
            if lv in ["prod"]:
                return "production"
            if lv in ["test"]:
                return "testing"
            return lv
        return v

    @field_validator("max_file_size")
    @classmethod
    def validate_file_size(cls, v):
        if v > 5 * 1024 * 1024 * 1024:
            raise ValueError("Maximum file size cannot exceed 5GB")
        if v <= 0:
            raise ValueError("Maximum file size must be positive")
        return v

    @field_validator("archive_max_concurrent_jobs")
    @classmethod
    def validate_archive_jobs(cls, v):
        if not 1 <= v <= 64:
            raise ValueError("Archive job concurrency must be between 1 and 64")
        return v

    @field_validator("cleanup_retention_days")
    @classmethod
    def validate_retention(cls, v):
        if v < 0:
            raise ValueError("Retention days cannot be negative")
        return v

    @model_validator(mode="after")
    def set_computed_fields(self):
        self.api_prefix = "/" + self.api_prefix.strip("/") if self.api_prefix.strip("/") else ""
        return self

    @model_validator(mode="after")
    def validate_download_timing(self):
        # the watchdog must not fail a job that is still inside its timeout
        if self.stuck_download_threshold_minutes * 60 <= self.archive_job_timeout:
            raise ValueError(
                "stuck_download_threshold_minutes must be longer than archive_job_timeout"
            )
        return self


settings = Settings()


class ConfigValidator:
    @staticmethod
    def validate_required_settings():
        errors = []
        if not settings.database_url:
            errors.append("DATABASE_URL is required")
        if settings.is_production and "secret_key" not in settings.model_fields_set:
            errors.append("SECRET_KEY must be set explicitly in production")
        if settings.download_executor == DownloadExecutorEnum.celery and not settings.celery_broker_url:
            errors.append("CELERY_BROKER_URL is required when DOWNLOAD_EXECUTOR=celery")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")

    @staticmethod
    def get_feature_status() -> dict:
        return {
            "email_enabled": settings.has_email,
            "download_executor": settings.download_executor.value,
            "storage_location": settings.storage_location,
            "environment": settings.environment,
        }


def get_config_summary() -> dict:
    return {
        "app_name": settings.app_name,
        "version": settings.version,
        "environment": settings.environment,
        "debug": settings.debug,
        "features": ConfigValidator.get_feature_status(),
        "database_configured": bool(settings.database_url),
    }


__all__ = [
    "settings",
    "Settings",
    "ConfigValidator",
    "get_config_summary",
    "EnvironmentEnum",
    "LogLevelEnum",
    "LogFormatEnum",
    "DownloadExecutorEnum",
]
