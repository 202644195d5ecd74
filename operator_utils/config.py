"""Configuration management for operator utilities."""

import logging
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """Operator settings."""

    model_config = SettingsConfigDict(
        env_prefix="OPERATOR_UTILS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service Settings
    service_name: str = Field(
        default="operator-utils",
        description="Component name reported as the source of emitted events",
    )
    log_level: str = "INFO"

    # Kubernetes Settings
    kubeconfig_path: Optional[str] = Field(
        default=None,
        description="Path to kubeconfig file, in-cluster config is used when unset",
    )
    kube_context: Optional[str] = None
    event_namespace: str = Field(
        default="default",
        description="Namespace for events about cluster-scoped objects",
    )

    # Backoff Settings
    backoff_unit_seconds: float = 1.0
    backoff_max_seconds: float = 6 * 60 * 60
    status_retry_seconds: float = 1.0

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("backoff_unit_seconds", "backoff_max_seconds", "status_retry_seconds")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Durations must be positive")
        return value

    @property
    def backoff_unit(self) -> timedelta:
        return timedelta(seconds=self.backoff_unit_seconds)

    @property
    def backoff_max(self) -> timedelta:
        return timedelta(seconds=self.backoff_max_seconds)

    @property
    def status_retry(self) -> timedelta:
        return timedelta(seconds=self.status_retry_seconds)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure process-wide logging.

    Called once by the process owner at startup; library components only
    ever log through the logger they were constructed with.

    Args:
        settings: Settings providing the log level (cached settings if None)
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
