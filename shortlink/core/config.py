"""Application configuration module.

This module contains settings for the URL shortener application,
loaded from environment variables with appropriate defaults.
"""

from __future__ import annotations

import string
from typing import Optional, List, Union
from enum import Enum
from pathlib import Path
import logging

from pydantic import field_validator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Set up basic logger for config module
logger = logging.getLogger(__name__)

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent


class EnvironmentType(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """Application settings loaded from environment variables with defaults.

    Settings are loaded from environment variables, with fallback to
    values in .env file if present, and finally to the default values
    specified here.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment setting
    ENVIRONMENT: EnvironmentType = EnvironmentType.DEVELOPMENT

    # App Information
    APP_NAME: str = "shortlink"
    APP_VERSION: str = "0.1.0"
    APP_DESCRIPTION: str = "URL shortening service with redirect analytics"

    # API Configuration
    BASE_URL: Optional[str] = None  # Falls back to the request's base URL
    API_PREFIX: str = "/api"
    DEBUG: bool = False

    # CORS settings
    CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000"]

    # Short code generation
    URL_CODE_LENGTH: int = 7
    URL_CODE_CHARS: str = string.ascii_letters + string.digits  # base62
    URL_CODE_MAX_ATTEMPTS: int = 5  # Insert attempts before giving up on collisions

    # URL validation
    URL_MAX_LENGTH: int = 2048
    URL_DISALLOWED_HOSTS: Union[List[str], str] = ["localhost", "127.0.0.1", "::1"]

    # PostgreSQL settings
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "shortlink"
    DATABASE_URI_OVERRIDE: Optional[str] = None

    # PostgreSQL pool settings
    POSTGRES_POOL_SIZE: int = 20
    POSTGRES_POOL_MAX_OVERFLOW: int = 10
    POSTGRES_POOL_TIMEOUT: int = 30
    POSTGRES_POOL_RECYCLE: int = 300
    DB_ECHO: bool = False

    # Migrations
    MIGRATE_ON_STARTUP: bool = False

    # Logging configuration
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_FILENAME: str = "app.log"
    LOG_ROTATION: str = "10 MB"
    LOG_RETENTION: str = "7 days"
    LOG_FORMAT: str = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[request_id]} | {message}"
    LOG_JSON: bool = True
    REQUEST_LOGGING_ENABLED: bool = True  # Enable request logging middleware

    # Operation timing thresholds (milliseconds)
    OPERATION_WARN_MS: float = 100.0
    OPERATION_ERROR_MS: float = 500.0

    # OpenTelemetry configuration
    OTEL_ENABLED: bool = False  # Enable/disable OpenTelemetry instrumentation
    OTEL_SERVICE_NAME: str = "shortlink"  # Service name for traces
    OTEL_RESOURCE_ATTRIBUTES: str = "service.namespace=shortlink"  # Resource attributes
    OTEL_EXPORTER_OTLP_ENDPOINT: str = "http://localhost:4317"  # OTLP gRPC endpoint for traces/metrics
    OTEL_TRACES_SAMPLER: str = "parentbased_traceidratio"  # Sampling strategy
    OTEL_TRACES_SAMPLER_ARG: float = 1.0  # Sample 100% of traces by default
    OTEL_METRICS_EXPORT_INTERVAL_MILLIS: int = 60000  # Export metrics every 60 seconds

    # Validators
    @field_validator("CORS_ORIGINS", "URL_DISALLOWED_HOSTS")
    def validate_list_or_string(cls, v: Union[List[str], str]) -> List[str]:
        """Convert comma-separated string to list if needed."""
        if isinstance(v, str):
            # If it's an empty string, return an empty list
            if not v.strip():
                return []
            # If it's a single "*", keep it as a list with one element
            if v == "*":
                return ["*"]
            # Otherwise split by comma and strip whitespace
            return [item.strip() for item in v.split(",")]
        return v

    @field_validator("URL_DISALLOWED_HOSTS")
    def lowercase_hosts(cls, v: List[str]) -> List[str]:
        """Hosts are compared case-insensitively."""
        return [host.lower() for host in v]

    @field_validator("URL_CODE_LENGTH", "URL_CODE_MAX_ATTEMPTS")
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("URL_CODE_CHARS")
    def validate_code_chars(cls, v: str) -> str:
        if len(set(v)) < 2:
            raise ValueError("URL_CODE_CHARS needs at least two distinct characters")
        if len(set(v)) != len(v):
            logger.warning("URL_CODE_CHARS contains duplicates; generated codes will be biased.")
        return v

    # Computed fields
    @computed_field
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """Construct the SQLAlchemy database URI from settings or use override."""
        if self.DATABASE_URI_OVERRIDE:
            return self.DATABASE_URI_OVERRIDE

        # Construct the URI from individual components
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"


# Create a singleton instance of the settings
settings = Settings()
