"""Application settings using Pydantic Settings.

Centralized configuration for the practice document engine.

All values can be overridden with environment variables:
- APP_*     application and business-rule settings
- REDIS_*   Redis connection used as the Celery broker
- CELERY_*  Celery worker behaviour
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class RedisSettings(BaseSettings):
    """Redis configuration for the Celery broker."""

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    db: int = Field(default=0, description="Redis database number")
    password: Optional[str] = Field(default=None, description="Redis password")
    ssl: bool = Field(default=False, description="Use SSL for Redis connection")

    @property
    def url(self) -> str:
        """Get Redis URL."""
        auth = f":{self.password}@" if self.password else ""
        protocol = "rediss" if self.ssl else "redis"
        return f"{protocol}://{auth}{self.host}:{self.port}/{self.db}"


class CelerySettings(BaseSettings):
    """Celery task queue configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CELERY_",
        extra="ignore",
    )

    broker_db: int = Field(default=1, description="Redis DB for Celery broker")
    result_db: int = Field(default=2, description="Redis DB for Celery results")

    task_serializer: str = Field(default="json", description="Task serialization format")
    result_serializer: str = Field(default="json", description="Result serialization format")
    accept_content: list = Field(default=["json"], description="Accepted content types")

    task_acks_late: bool = Field(default=True, description="Acknowledge tasks after completion")
    task_reject_on_worker_lost: bool = Field(default=True, description="Requeue tasks if the worker dies")
    worker_prefetch_multiplier: int = Field(default=1, description="Tasks to prefetch per worker")
    task_time_limit: int = Field(default=900, description="Hard task time limit in seconds")
    task_soft_time_limit: int = Field(default=840, description="Soft task time limit")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application info
    name: str = Field(default="Practice Document Engine", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    environment: str = Field(default="development", description="Environment name")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="Emit JSON formatted logs")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")

    # Document tree
    month_create_max_retries: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Optimistic retries when two writers create the same month",
    )

    # Automatic month locking
    auto_lock_day: int = Field(default=26, ge=1, le=28, description="Day of month the previous month is locked")
    auto_lock_hour: int = Field(default=0, ge=0, le=23, description="Hour (UTC) the auto lock runs")
    auto_lock_actor: str = Field(default="SYSTEM_CRON", description="Actor recorded on automatic locks")

    # Assignment rules
    min_assignment_year: int = Field(default=2020, description="Earliest year a task can be assigned for")
    max_assignment_year: int = Field(default=2100, description="Latest year a task can be assigned for")
    max_tasks_per_month: int = Field(default=4, ge=1, description="Active tasks allowed per client month")

    # Collaborators
    notifications_enabled: bool = Field(default=True, description="Send assignment emails")
    admin_report_email: Optional[str] = Field(default=None, description="Recipient of the auto-lock run report")
    audit_db_path: str = Field(default="./data/audit_log.db", description="SQLite file for the audit trail")

    @model_validator(mode="after")
    def _check_year_window(self) -> "Settings":
        if self.min_assignment_year > self.max_assignment_year:
            raise ValueError(
                f"min_assignment_year ({self.min_assignment_year}) is after "
                f"max_assignment_year ({self.max_assignment_year})"
            )
        return self

    # Nested settings (loaded separately)
    @property
    def redis(self) -> RedisSettings:
        return RedisSettings()

    @property
    def celery(self) -> CelerySettings:
        return CelerySettings()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment in ("production", "prod", "staging")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings instance loaded from environment
    """
    settings = Settings()
    logger.debug(f"Loaded settings for environment={settings.environment}")
    return settings
