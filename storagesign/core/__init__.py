"""Configuration and logging for StorageSign."""

from .config_manager import ConfigManager, StorageSignConfig
from .logging_config import setup_logging

__all__ = ["ConfigManager", "StorageSignConfig", "setup_logging"]
