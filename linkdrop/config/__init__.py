"""Configuration read from the environment."""

from .app_config import AppConfig
from .redis_config import RedisConfig
from .storage_config import StorageConfig

__all__ = ["AppConfig", "RedisConfig", "StorageConfig"]
