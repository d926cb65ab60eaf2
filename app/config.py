# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# The Settings class validates all values at startup, catching configuration
# errors early rather than at runtime.
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses pydantic-settings to:
    - Automatically load from .env file
    - Validate types and constraints
    - Provide sensible defaults for development

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # These are required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,  # ... means required (no default)
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="Legacy HS256 JWT secret used to verify Supabase tokens"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (for Celery)
    # -------------------------------------------------------------------------
    # Default to localhost for development

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for Celery broker"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:5173",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Bulk Import Settings
    # -------------------------------------------------------------------------

    MAX_UPLOAD_SIZE_MB: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum spreadsheet upload size in MB"
    )

    MAX_ARCHIVE_SIZE_MB: int = Field(
        default=200,
        ge=1,
        le=1000,
        description="Maximum image archive (ZIP) upload size in MB"
    )

    ALLOWED_SPREADSHEET_EXTENSIONS: str = Field(
        default=".xlsx,.xls,.csv",
        description="Allowed spreadsheet extensions (comma-separated)"
    )

    SUPPLIER_IMAGES_BUCKET: str = Field(
        default="supplier-images",
        description="Public storage bucket that hosts supplier images"
    )

    IMPORT_FILES_BUCKET: str = Field(
        default="supplier-imports",
        description="Private storage bucket where import files are staged for workers"
    )

    IMPORT_HISTORY_LIMIT: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Number of history rows returned by default"
    )

    # -------------------------------------------------------------------------
    # Trial / Feature Access Settings
    # -------------------------------------------------------------------------

    TRIAL_DURATION_DAYS: int = Field(
        default=3,
        ge=1,
        description="Length of the free trial window in days"
    )

    TRIAL_ALLOWED_SUPPLIERS: int = Field(
        default=3,
        ge=1,
        description="How many suppliers a trial user can see in full at a time"
    )

    TRIAL_ROTATION_HOURS: int = Field(
        default=24,
        ge=1,
        description="Hours between rotations of the trial supplier subset"
    )

    SUPPLIERS_FEATURE_KEY: str = Field(
        default="suppliers_list",
        description="Feature key used to gate the supplier directory"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        # Load from .env file in project root
        env_file=".env",
        env_file_encoding="utf-8",
        # Don't fail if .env doesn't exist (useful for production where
        # env vars are set directly)
        env_ignore_empty=True,
        # Case-sensitive environment variable names
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:5173, https://app.example.com" -> ["http://localhost:5173", "https://app.example.com"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def allowed_spreadsheet_extensions_list(self) -> list[str]:
        """
        Parse ALLOWED_SPREADSHEET_EXTENSIONS string into a list.

        Example: ".xlsx, .csv" -> [".xlsx", ".csv"]
        """
        return [ext.strip().lower() for ext in self.ALLOWED_SPREADSHEET_EXTENSIONS.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Convert MB to bytes for spreadsheet size validation."""
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def max_archive_size_bytes(self) -> int:
        """Convert MB to bytes for archive size validation."""
        return self.MAX_ARCHIVE_SIZE_MB * 1024 * 1024

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.

    Returns:
        Settings: The application settings instance
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
