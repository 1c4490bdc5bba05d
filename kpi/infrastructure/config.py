"""
Centralized configuration management for the KPI evaluation engine.

Provides environment-specific configuration with validation, type safety,
and settings management using Pydantic.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from ..domain.models import DEFAULT_POLICY, ScoringPolicy
from .exceptions import ConfigurationError


class ScoringConfig(BaseSettings):
    """
    Scoring rule settings.

    The defaults reproduce the canonical 100-point rubric rules: a flat
    30-point deduction when any item is rated WEAK, "Xuất Sắc" from 90 points
    and "Đạt Yêu Cầu" from 70 points.

    Example:
        >>> cfg = ScoringConfig()
        >>> cfg.to_policy().penalty_points
        30.0
    """

    penalty_points: float = Field(
        DEFAULT_POLICY.penalty_points, ge=0, description="Flat deduction when any item is WEAK"
    )
    excellent_threshold: float = Field(
        DEFAULT_POLICY.excellent_threshold, gt=0, description="Minimum points for Xuất Sắc"
    )
    meets_threshold: float = Field(
        DEFAULT_POLICY.meets_threshold, gt=0, description="Minimum points for Đạt Yêu Cầu"
    )

    model_config = {"env_prefix": "SCORING_", "case_sensitive": False}

    @model_validator(mode="after")
    def thresholds_are_ordered(self):
        """The pass threshold must sit below the excellence threshold."""
        if self.meets_threshold >= self.excellent_threshold:
            raise ValueError("meets_threshold must be lower than excellent_threshold")
        return self

    def to_policy(self) -> ScoringPolicy:
        return ScoringPolicy(
            penalty_points=self.penalty_points,
            excellent_threshold=self.excellent_threshold,
            meets_threshold=self.meets_threshold,
        )


class LoggingConfig(BaseSettings):
    """
    Logging configuration settings.

    Unset fields fall back to environment-derived defaults, see
    ``Settings.logging``.

    Example:
        >>> log_config = LoggingConfig(level="DEBUG", file_path="./logs/kpi.log")
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Minimum logging level"
    )
    file_path: str | None = Field(None, description="Log file path")
    max_bytes: int = Field(10 * 1024 * 1024, ge=1024, description="Max log file size in bytes")
    backup_count: int = Field(5, ge=1, description="Number of backup log files")
    structured: bool = Field(True, description="Use structured JSON logging")
    console_enabled: bool = Field(True, description="Enable console output")

    model_config = {"env_prefix": "LOG_", "case_sensitive": False}


class ExportConfig(BaseSettings):
    """Settings for report exports."""

    default_format: Literal["text", "json", "csv", "xlsx"] = Field(
        "text", description="Default export format for the command line"
    )
    summary_sheet_name: str = Field("Tổng hợp", min_length=1, max_length=31)
    items_sheet_name: str = Field("Chi tiết", min_length=1, max_length=31)
    json_indent: int = Field(2, ge=0, le=8)

    model_config = {"env_prefix": "EXPORT_", "case_sensitive": False}

    @field_validator("summary_sheet_name", "items_sheet_name")
    def validate_sheet_name(cls, v):
        """Excel rejects these characters in worksheet names."""
        if any(ch in v for ch in "[]:*?/\\"):
            raise ValueError("Sheet name contains characters Excel does not allow")
        return v


class ApplicationConfig(BaseSettings):
    """
    Main application configuration.

    Example:
        >>> config = get_settings()
        >>> print(config.app.environment)
    """

    environment: Literal["development", "testing", "production"] = Field(
        "development", description="Application environment"
    )
    debug: bool = Field(False, description="Enable debug mode")
    version: str = Field("0.1.0", description="Application version")

    validate_on_load: bool = Field(
        True, description="Run rubric validation whenever a rubric is loaded"
    )

    model_config = {"env_prefix": "APP_", "case_sensitive": False}

    @model_validator(mode="after")
    def debug_implies_development(self):
        """Ensure debug mode is only enabled in development."""
        if self.debug and self.environment == "production":
            raise ValueError("Debug mode cannot be enabled in production")
        return self


class Settings:
    """
    Complete application settings container.

    Provides structured access to all configuration sections
    with lazy loading and caching.

    Example:
        >>> settings = get_settings()
        >>> print(settings.scoring.penalty_points)
        >>> print(settings.app.environment)
    """

    def __init__(self):
        self._app: ApplicationConfig | None = None
        self._scoring: ScoringConfig | None = None
        self._logging: LoggingConfig | None = None
        self._export: ExportConfig | None = None

    @property
    def app(self) -> ApplicationConfig:
        """Get application configuration."""
        if self._app is None:
            self._app = ApplicationConfig()
        return self._app

    @property
    def scoring(self) -> ScoringConfig:
        """Get scoring rule configuration."""
        if self._scoring is None:
            self._scoring = ScoringConfig()
        return self._scoring

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration."""
        if self._logging is None:
            config = LoggingConfig()
            defaults: dict[str, Any] = {}
            if "level" not in config.model_fields_set:
                defaults["level"] = "DEBUG" if self.app.debug else "INFO"
                if self.is_production():
                    defaults["level"] = "WARNING"
            if "structured" not in config.model_fields_set:
                defaults["structured"] = not self.is_development()
            self._logging = config.model_copy(update=defaults)
        return self._logging

    @property
    def export(self) -> ExportConfig:
        """Get export configuration."""
        if self._export is None:
            self._export = ExportConfig()
        return self._export

    def is_development(self) -> bool:
        return self.app.environment == "development"

    def is_production(self) -> bool:
        return self.app.environment == "production"

    def is_testing(self) -> bool:
        return self.app.environment == "testing"

    def get_environment_info(self) -> dict[str, Any]:
        """Get summary of current environment configuration."""
        return {
            "environment": self.app.environment,
            "version": self.app.version,
            "debug": self.app.debug,
            "logging_level": self.logging.level,
            "scoring": {
                "penalty_points": self.scoring.penalty_points,
                "excellent_threshold": self.scoring.excellent_threshold,
                "meets_threshold": self.scoring.meets_threshold,
            },
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get application settings instance (cached).

    Returns:
        Settings instance with all configuration loaded
    """
    return Settings()


def load_settings_from_file(file_path: str) -> Settings:
    """
    Load settings from a JSON configuration file.

    The file holds one object per section, e.g.
    ``{"scoring": {"penalty_points": 30}, "app": {"environment": "testing"}}``.

    Raises:
        FileNotFoundError: If configuration file doesn't exist
        ConfigurationError: If the file is not a JSON object of sections
    """
    config_path = Path(file_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    if config_path.suffix.lower() != ".json":
        raise ConfigurationError(
            f"Unsupported configuration file format: {config_path.suffix}", config_key=file_path
        )

    with open(config_path, encoding="utf-8") as f:
        config_data = json.load(f)
    if not isinstance(config_data, dict):
        raise ConfigurationError(
            "Configuration file must contain a JSON object", config_key=file_path
        )

    for section, values in config_data.items():
        if isinstance(values, dict):
            for key, value in values.items():
                env_key = f"{section.upper()}_{key.upper()}"
                os.environ[env_key] = str(value)

    get_settings.cache_clear()
    return get_settings()


def reset_settings() -> None:
    """Reset settings cache to reload from environment."""
    get_settings.cache_clear()


def get_scoring_policy() -> ScoringPolicy:
    """Scoring policy from the current settings."""
    return get_settings().scoring.to_policy()
