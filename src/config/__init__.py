"""Configuration module for the practice document engine."""

from .database import DatabaseSettings, get_database_settings
from .settings import CelerySettings, RedisSettings, Settings, get_settings

__all__ = [
    "DatabaseSettings",
    "get_database_settings",
    "CelerySettings",
    "RedisSettings",
    "Settings",
    "get_settings",
]
