"""
Configuration using Pydantic Settings.

Provides centralized configuration for the submission-integrity pipeline:
database connection, boundary validation policy and overlap query limits.
Every section loads from environment variables (and ``.env``) with its own
prefix.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from landclaim.boundary.extract import ExtractionPolicy


class Environment(str, Enum):
    """Application environment modes."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DatabaseSettings(BaseSettings):
    """PostGIS connection settings."""

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    name: str = Field(default="landclaim", description="Database name")
    user: str = Field(default="postgres", description="Database user")
    password: str = Field(default="", description="Database password")
    min_pool_size: int = Field(default=2, description="Minimum pool connections")
    max_pool_size: int = Field(default=10, description="Maximum pool connections")

    @property
    def dsn(self) -> str:
        """Construct the asyncpg connection DSN."""
        if self.password:
            return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"
        return f"postgresql://{self.user}@{self.host}:{self.port}/{self.name}"


class BoundarySettings(BaseSettings):
    """Boundary file extraction and polygon validation policy."""

    model_config = SettingsConfigDict(
        env_prefix="BOUNDARY_",
        env_file=".env",
        extra="ignore",
    )

    min_vertices: int = Field(default=3, ge=3, description="Minimum polygon vertices")
    max_vertices: int = Field(default=100, description="Maximum polygon vertices")
    reject_self_intersection: bool = Field(
        default=True,
        description="Reject polygons whose edges cross during finalization",
    )
    kml_fail_fast: bool = Field(
        default=True,
        description="Fail the whole KML extraction on one bad coordinate token",
    )
    gpx_skip_invalid: bool = Field(
        default=True,
        description="Silently skip GPX points with missing or bad lat/lon",
    )
    max_file_bytes: int = Field(
        default=10 * 1024 * 1024,
        gt=0,
        description="Largest boundary upload, and largest uncompressed KML inside a KMZ",
    )

    @model_validator(mode="after")
    def check_vertex_bounds(self) -> "BoundarySettings":
        """Ensure the vertex bounds describe a non-empty range."""
        if self.max_vertices < self.min_vertices:
            raise ValueError(
                f"max_vertices ({self.max_vertices}) must be >= "
                f"min_vertices ({self.min_vertices})"
            )
        return self

    def extraction_policy(self) -> ExtractionPolicy:
        """Build the per-format extraction policy from these settings."""
        return ExtractionPolicy(
            kml_fail_fast=self.kml_fail_fast,
            gpx_skip_invalid=self.gpx_skip_invalid,
            max_file_bytes=self.max_file_bytes,
        )


class OverlapSettings(BaseSettings):
    """Spatial overlap query settings."""

    model_config = SettingsConfigDict(
        env_prefix="OVERLAP_",
        env_file=".env",
        extra="ignore",
    )

    query_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for the spatial intersection query",
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="LANDCLAIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Environment = Field(
        default=Environment.DEVELOPMENT, description="Environment mode"
    )
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    boundary: BoundarySettings = Field(default_factory=BoundarySettings)
    overlap: OverlapSettings = Field(default_factory=OverlapSettings)

    @model_validator(mode="after")
    def configure_environment_defaults(self) -> "Settings":
        """Set environment-specific defaults."""
        if self.environment == Environment.DEVELOPMENT:
            if self.log_level == LogLevel.INFO:
                object.__setattr__(self, "log_level", LogLevel.DEBUG)
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.

    Returns:
        Settings instance with loaded configuration.
    """
    return Settings()


def get_settings_uncached() -> Settings:
    """
    Get fresh settings instance (useful for testing).

    Returns:
        New Settings instance with loaded configuration.
    """
    return Settings()
