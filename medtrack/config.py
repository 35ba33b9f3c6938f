"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Secure defaults (local storage only, no data sharing)
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

# Load environment variables from .env file
load_dotenv()


class StorageConfig(BaseModel):
    """Where the health document lives on the device."""

    backend: Literal["file", "memory"] = Field(
        default="file", description="Durable file storage or process-local memory"
    )
    data_dir: str = Field(default="./data", description="Directory holding one file per key")
    database_key: str = Field(
        default="health_database", min_length=1, description="Key of the unified document"
    )
    legacy_medications_key: str = Field(
        default="medications", min_length=1, description="Key of the pre-document medication list"
    )

    @model_validator(mode="after")
    def keys_must_differ(self) -> "StorageConfig":
        if self.database_key == self.legacy_medications_key:
            raise ValueError("database key and legacy medications key must differ")
        return self


class SummaryConfig(BaseModel):
    """Tuning for the home-screen and blood-pressure summaries."""

    average_window_days: int = Field(
        default=7, gt=0, description="Days of readings included in the rolling average"
    )
    trend_min_readings: int = Field(
        default=4, ge=2, description="Readings required before a trend is reported"
    )
    trend_stable_threshold_mmhg: float = Field(
        default=5.0, gt=0.0, description="Systolic change below which the trend is stable"
    )
    weekly_therapy_goal: int = Field(default=5, ge=0, description="Therapy sessions per week")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Component configs
    storage: StorageConfig = Field(default_factory=StorageConfig)
    summary: SummaryConfig = Field(default_factory=SummaryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    def _backend_to_literal(val: str) -> Literal["file", "memory"]:
        return "memory" if val.strip().lower() == "memory" else "file"

    # Detect environment
    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    storage_config = StorageConfig(
        backend=_backend_to_literal(os.getenv("MEDTRACK_STORAGE_BACKEND", "file")),
        data_dir=os.getenv("MEDTRACK_DATA_DIR", "./data"),
        database_key=os.getenv("MEDTRACK_DATABASE_KEY", "health_database"),
        legacy_medications_key=os.getenv("MEDTRACK_LEGACY_MEDICATIONS_KEY", "medications"),
    )

    summary_config = SummaryConfig(
        average_window_days=int(os.getenv("MEDTRACK_AVERAGE_WINDOW_DAYS", "7")),
        weekly_therapy_goal=int(os.getenv("MEDTRACK_WEEKLY_THERAPY_GOAL", "5")),
    )

    # Console output while developing unless explicitly overridden
    log_format = os.getenv("LOG_FORMAT", "console" if debug else "json").strip().lower()
    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if log_format == "console" else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        storage=storage_config,
        summary=summary_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def validate_config() -> None:
    """Validate configuration at startup."""
    try:
        config = get_config()
        print(f"Configuration loaded for {config.environment} environment")

        if config.storage.backend == "memory":
            print("Storage is in-memory only: data will not survive a restart")

    except Exception as e:
        print(f"Configuration validation failed: {e}")
        raise


# Development helpers
def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level} ({config.logging.format})")

    print("\nSTORAGE")
    print(f"Backend: {config.storage.backend}")
    print(f"Data Directory: {config.storage.data_dir}")
    print(f"Document Key: {config.storage.database_key}")
    print(f"Legacy Key: {config.storage.legacy_medications_key}")

    print("\nSUMMARIES")
    print(f"Average Window: {config.summary.average_window_days}d")
    print(f"Trend Threshold: {config.summary.trend_stable_threshold_mmhg} mmHg")
    print(f"Weekly Therapy Goal: {config.summary.weekly_therapy_goal}")


if __name__ == "__main__":
    validate_config()
    print_config_summary()
