"""
Application configuration management using Pydantic settings.

Every group reads its own environment prefix; ApplicationSettings aggregates
them and also reads a local .env file.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database configuration with connection pooling"""

    # Core database settings
    database_url: str = Field(
        default="sqlite+aiosqlite:///./persons.db",
        description="Database connection URL",
    )
    database_pool_size: int = Field(default=5, description="Database connection pool size")
    database_max_overflow: int = Field(default=10, description="Maximum overflow connections")
    database_pool_timeout: int = Field(default=30, description="Pool connection timeout")
    database_pool_recycle: int = Field(default=3600)

    # Connection settings
    database_echo: bool = Field(default=False)

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        """Ensure database URL is a supported SQLite or PostgreSQL URL"""
        if not (v.startswith("sqlite") or v.startswith("postgresql")):
            raise ValueError(
                "Database URL must be SQLite (sqlite://...) or PostgreSQL (postgresql://...)"
            )
        return v

    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def is_in_memory(self) -> bool:
        """Check if the URL points at a private in-memory SQLite database"""
        if not self.is_sqlite():
            return False
        return ":memory:" in self.database_url or self.database_url.endswith("://")

    def async_database_url(self) -> str:
        """Database URL with the async driver filled in"""
        url = self.database_url
        if url.startswith("sqlite://"):
            return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    model_config = SettingsConfigDict(env_prefix="DB_")


class IngestionSettings(BaseSettings):
    """Startup ingestion of the delimited person source"""

    enabled: bool = Field(default=True, description="Load the source at startup")
    source_file: Optional[Path] = Field(
        default=None, description="Source file; the bundled sample when unset"
    )
    encoding: str = Field(default="utf-8")
    delimiter: str = Field(default=",", min_length=1, max_length=1)

    model_config = SettingsConfigDict(env_prefix="INGESTION_")


class SecuritySettings(BaseSettings):
    """Security configuration"""

    # CORS settings
    cors_origins: list[str] = Field(default_factory=list)
    cors_allow_credentials: bool = Field(default=False)

    model_config = SettingsConfigDict(env_prefix="SECURITY_")


class MonitoringSettings(BaseSettings):
    """Monitoring and observability configuration"""

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")  # json, text

    # Metrics
    prometheus_enabled: bool = Field(default=False)

    # Performance monitoring
    performance_tracking_enabled: bool = Field(default=True)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format"""
        if v not in ["json", "text"]:
            raise ValueError('Log format must be "json" or "text"')
        return v

    model_config = SettingsConfigDict(env_prefix="MONITORING_")


class ApplicationSettings(BaseSettings):
    """Main application configuration"""

    # Basic application settings
    app_name: str = Field(default="Person Registry")
    app_version: str = Field(default="1.0.0")
    environment: str = Field(default="development")
    debug_mode: bool = Field(default=False)

    # Server settings
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1024, le=65535)

    # Component settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment name"""
        valid_environments = ["development", "staging", "production"]
        if v not in valid_environments:
            raise ValueError(f"Environment must be one of {valid_environments}")
        return v

    @field_validator("debug_mode")
    @classmethod
    def validate_debug_mode(cls, v, info):
        """Ensure debug mode is disabled in production"""
        environment = info.data.get("environment", "development")
        if environment == "production" and v:
            raise ValueError("Debug mode must be disabled in production")
        return v

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment == "production"

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.environment == "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> ApplicationSettings:
    """
    Get application settings with caching.
    Uses LRU cache to avoid re-reading environment on every call.
    """
    return ApplicationSettings()


def validate_settings(settings: Optional[ApplicationSettings] = None) -> list[str]:
    """
    Validate settings that cannot be checked field by field.
    Call this at application startup to fail fast on configuration errors.

    Returns:
        Warnings about settings that are usable but probably wrong

    Raises:
        ValueError: If the settings cannot work
    """
    settings = settings or get_settings()
    warnings = []

    if settings.is_production() and settings.database.is_in_memory():
        raise ValueError("In-memory database is not allowed in production")

    source_file = settings.ingestion.source_file
    if settings.ingestion.enabled and source_file is not None and not source_file.is_file():
        warnings.append(f"Ingestion source file not found: {source_file}")

    return warnings


def get_environment_info(settings: Optional[ApplicationSettings] = None) -> dict:
    """Get current environment information for debugging"""
    settings = settings or get_settings()

    return {
        "app_name": settings.app_name,
        "app_version": settings.app_version,
        "environment": settings.environment,
        "debug_mode": settings.debug_mode,
        "host": settings.host,
        "port": settings.port,
        "database_backend": "sqlite" if settings.database.is_sqlite() else "postgresql",
        "ingestion_enabled": settings.ingestion.enabled,
        "ingestion_source": str(settings.ingestion.source_file or "bundled sample"),
        "log_level": settings.monitoring.log_level,
        "log_format": settings.monitoring.log_format,
        "prometheus_enabled": settings.monitoring.prometheus_enabled,
    }


# Export main settings getter for easy importing
__all__ = [
    "ApplicationSettings",
    "DatabaseSettings",
    "IngestionSettings",
    "MonitoringSettings",
    "SecuritySettings",
    "get_settings",
    "validate_settings",
    "get_environment_info",
]
