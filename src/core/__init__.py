"""
Core - process level infrastructure.

Provides:
- ConfigManager: settings with JSON/TOML persistence
- setup_logging / component_logger: loguru sinks and per component loggers
- MongoManager: owns the MongoDB connection
- RedisManager: owns the Redis connection
"""
from .config import (
    ConfigManager,
    AppConfig,
    AlbumSettings,
    GeneralSettings,
    MongoSettings,
    RedisSettings,
    SizeSettings,
)
from .logging import setup_logging, component_logger
from .database.manager import MongoManager
from .cache.manager import RedisManager

__all__ = [
    # Configuration
    "ConfigManager",
    "AppConfig",
    "AlbumSettings",
    "GeneralSettings",
    "MongoSettings",
    "RedisSettings",
    "SizeSettings",

    # Logging
    "setup_logging",
    "component_logger",

    # Connections
    "MongoManager",
    "RedisManager",
]
