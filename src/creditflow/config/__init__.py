"""Configuration module."""
from .manager import Config, ConfigManager, require_api_key
from .settings import AppSettings, get_settings, reset_settings

__all__ = ["Config", "ConfigManager", "require_api_key", "AppSettings", "get_settings", "reset_settings"]
