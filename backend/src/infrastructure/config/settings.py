import logging
import os
from enum import Enum
from typing import List

from pydantic_settings import BaseSettings
from starlette.config import Config

logger = logging.getLogger(__name__)

current_file_dir = os.path.dirname(os.path.realpath(__file__))
project_root = os.path.abspath(os.path.join(current_file_dir, "..", "..", "..", ".."))

env_paths = [
    "/code/.env",
    os.path.join(project_root, ".env"),
    "/.env",
]

env_path = next((path for path in env_paths if os.path.isfile(path)), env_paths[0])
logger.info(f"Using environment file at: {env_path}")

config = Config(env_path)


class EnvironmentOption(str, Enum):
    """Environment options for the application."""

    PRODUCTION = "production"
    STAGING = "staging"
    DEVELOPMENT = "development"
    LOCAL = "local"


class EnvironmentSettings(BaseSettings):
    """Environment-related settings."""

    ENVIRONMENT: EnvironmentOption = config("ENVIRONMENT", default=EnvironmentOption.DEVELOPMENT, cast=EnvironmentOption)


class DatabaseSettings(BaseSettings):
    """Database-related settings."""

    POSTGRES_USER: str = config("POSTGRES_USER", default="postgres")
    POSTGRES_PASSWORD: str = config("POSTGRES_PASSWORD", default="postgres")
    POSTGRES_SERVER: str = config("POSTGRES_SERVER", default="localhost")
    POSTGRES_PORT: int = config("POSTGRES_PORT", default=5432, cast=int)
    POSTGRES_DB: str = config("POSTGRES_DB", default="postgres")
    POSTGRES_ASYNC_PREFIX: str = config("POSTGRES_ASYNC_PREFIX", default="postgresql+asyncpg://")
    CREATE_TABLES_ON_STARTUP: bool = config("CREATE_TABLES_ON_STARTUP", default=True, cast=bool)

    POSTGRES_POOL_SIZE: int = config("POSTGRES_POOL_SIZE", default=20, cast=int)
    POSTGRES_MAX_OVERFLOW: int = config("POSTGRES_MAX_OVERFLOW", default=0, cast=int)

    @property
    def DATABASE_URL(self) -> str:
        """Get the full database URL."""
        return (
            f"{self.POSTGRES_ASYNC_PREFIX}{self.POSTGRES_USER}:"
            f"{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:"
            f"{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


class CORSSettings(BaseSettings):
    """CORS-related settings."""

    CORS_ENABLED: bool = config("CORS_ENABLED", default=True, cast=bool)
    CORS_ORIGINS: str = config("CORS_ORIGINS", default="*")
    CORS_ALLOW_CREDENTIALS: bool = config("CORS_ALLOW_CREDENTIALS", default=True, cast=bool)

    @property
    def CORS_ORIGINS_LIST(self) -> List[str]:
        """Get CORS origins as a list."""
        if not self.CORS_ORIGINS:
            return ["*"]
        return [x.strip() for x in self.CORS_ORIGINS.split(",") if x.strip()]

    CORS_ALLOW_METHODS: str = config("CORS_ALLOW_METHODS", default="*")
    CORS_ALLOW_HEADERS: str = config("CORS_ALLOW_HEADERS", default="*")


class CompressionSettings(BaseSettings):
    """Compression-related settings."""

    GZIP_ENABLED: bool = config("GZIP_ENABLED", default=True, cast=bool)
    GZIP_MINIMUM_SIZE: int = config("GZIP_MINIMUM_SIZE", default=1000, cast=int)


class APIDocSettings(BaseSettings):
    """API documentation settings."""

    ENABLE_DOCS_IN_PRODUCTION: bool = config("ENABLE_DOCS_IN_PRODUCTION", default=False, cast=bool)
    DOCS_URL: str = config("DOCS_URL", default="/docs")
    REDOC_URL: str = config("REDOC_URL", default="/redoc")
    OPENAPI_URL: str = config("OPENAPI_URL", default="/openapi.json")


class AppSettings(BaseSettings):
    """Application-related settings."""

    APP_NAME: str = config("APP_NAME", default="Client Analysis Portal")
    APP_DESCRIPTION: str = "Client onboarding document analysis and reporting"
    APP_URL: str = config("APP_URL", default="http://localhost:3000")
    DEBUG: bool = config("DEBUG", default=False, cast=bool)
    VERSION: str = "0.1.0"

    API_PREFIX: str = "/api"


class LoggingSettings(BaseSettings):
    """Centralized logging configuration settings."""

    LOG_LEVEL: str = config("LOG_LEVEL", default="INFO")
    LOG_FORMAT: str = config("LOG_FORMAT", default="structured")  # "detailed", "structured", "json"

    LOG_CONSOLE_ENABLED: bool = config("LOG_CONSOLE_ENABLED", default=True, cast=bool)
    LOG_FILE_ENABLED: bool = config("LOG_FILE_ENABLED", default=False, cast=bool)
    LOG_FILE_PATH: str = config("LOG_FILE_PATH", default="logs/portal.log")
    LOG_FILE_MAX_SIZE: int = config("LOG_FILE_MAX_SIZE", default=10485760, cast=int)
    LOG_FILE_BACKUP_COUNT: int = config("LOG_FILE_BACKUP_COUNT", default=5, cast=int)

    LOG_CORRELATION_ID: bool = config("LOG_CORRELATION_ID", default=True, cast=bool)
    LOG_DEVELOPMENT_VERBOSE: bool = config("LOG_DEVELOPMENT_VERBOSE", default=True, cast=bool)
    LOG_PRODUCTION_OPTIMIZE: bool = config("LOG_PRODUCTION_OPTIMIZE", default=True, cast=bool)

    @property
    def LOG_LEVEL_INT(self) -> int:
        """Convert string log level to integer."""
        level_map = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }
        return level_map.get(self.LOG_LEVEL.upper(), logging.INFO)


class AnthropicSettings(BaseSettings):
    """Language model settings for document analysis."""

    ANTHROPIC_API_KEY: str = config("ANTHROPIC_API_KEY", default="")
    ANTHROPIC_MODEL: str = config("ANTHROPIC_MODEL", default="claude-sonnet-4-5")
    ANTHROPIC_TIMEOUT_SECONDS: float = config("ANTHROPIC_TIMEOUT_SECONDS", default=60.0, cast=float)

    ANALYSIS_TEMPERATURE: float = config("ANALYSIS_TEMPERATURE", default=0.2, cast=float)
    ANALYSIS_MAX_TOKENS: int = config("ANALYSIS_MAX_TOKENS", default=4096, cast=int)
    SUMMARY_TEMPERATURE: float = config("SUMMARY_TEMPERATURE", default=0.5, cast=float)
    SUMMARY_MAX_TOKENS: int = config("SUMMARY_MAX_TOKENS", default=1024, cast=int)


class StorageSettings(BaseSettings):
    """Object storage settings."""

    STORAGE_BACKEND: str = config("STORAGE_BACKEND", default="local")  # "local", "supabase"
    STORAGE_BUCKET: str = config("STORAGE_BUCKET", default="documents")
    STORAGE_LOCAL_ROOT: str = config("STORAGE_LOCAL_ROOT", default="storage")
    STORAGE_TIMEOUT_SECONDS: float = config("STORAGE_TIMEOUT_SECONDS", default=30.0, cast=float)

    SUPABASE_URL: str = config("SUPABASE_URL", default="")
    SUPABASE_SERVICE_ROLE_KEY: str = config("SUPABASE_SERVICE_ROLE_KEY", default="")


class EmailSettings(BaseSettings):
    """Transactional email settings."""

    RESEND_API_KEY: str = config("RESEND_API_KEY", default="")
    RESEND_API_URL: str = config("RESEND_API_URL", default="https://api.resend.com/emails")
    EMAIL_FROM: str = config("EMAIL_FROM", default="noreply@example.com")
    EMAIL_TIMEOUT_SECONDS: float = config("EMAIL_TIMEOUT_SECONDS", default=15.0, cast=float)


class AnalysisSettings(BaseSettings):
    """Document analysis lifecycle settings."""

    ANALYSIS_DISPATCH_MODE: str = config("ANALYSIS_DISPATCH_MODE", default="background")  # "background", "http"
    ANALYSIS_TRIGGER_BASE_URL: str = config("ANALYSIS_TRIGGER_BASE_URL", default="http://localhost:8000")
    ANALYSIS_TRIGGER_TOKEN: str = config("ANALYSIS_TRIGGER_TOKEN", default="")
    ANALYSIS_TRIGGER_TIMEOUT_SECONDS: float = config("ANALYSIS_TRIGGER_TIMEOUT_SECONDS", default=5.0, cast=float)
    ANALYSIS_STALE_AFTER_SECONDS: int = config("ANALYSIS_STALE_AFTER_SECONDS", default=600, cast=int)


class Settings(
    EnvironmentSettings,
    DatabaseSettings,
    CORSSettings,
    CompressionSettings,
    APIDocSettings,
    AppSettings,
    LoggingSettings,
    AnthropicSettings,
    StorageSettings,
    EmailSettings,
    AnalysisSettings,
):
    """Main settings class that combines all setting categories."""

    pass


settings = Settings()


def get_settings() -> Settings:
    """Get application settings.

    Returns:
        The application settings.
    """
    return settings
