"""Application settings loader from YAML configuration."""
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from creditflow.utils.exceptions import ConfigError
from creditflow.utils.logger import configure_logging
from creditflow.utils.retry import RetryPolicy

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent.parent / "config.yaml"


@dataclass
class AppSettings:
    """Application-wide settings loaded from config.yaml."""

    # App info
    app_name: str = "CreditFlow"
    app_version: str = "1.0.0"

    # Logging
    log_level: str = "INFO"
    log_max_file_size_mb: int = 10
    log_backup_count: int = 30

    # LLM
    llm_model_name: str = "gemini-2.5-flash"
    llm_temperature: float = 0.0

    # Retry
    retry_max_attempts: int = 3
    retry_initial_delay_seconds: float = 1.0
    retry_backoff_factor: float = 2.0

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            initial_delay=self.retry_initial_delay_seconds,
            backoff_factor=self.retry_backoff_factor
        )

    def apply_logging(self, log_level: Optional[str] = None):
        """Configure the global logger from the logging section."""
        return configure_logging(
            log_level=log_level or self.log_level,
            backup_count=self.log_backup_count,
            max_file_size_mb=self.log_max_file_size_mb
        )

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "AppSettings":
        """Load settings from YAML file, falling back to defaults."""
        if config_path is None:
            env_path = os.getenv("CREDITFLOW_CONFIG")
            config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH

        if not config_path.exists():
            return cls()

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid configuration file {config_path}: {e}")

        return cls(**_flatten(config))


def _flatten(config: Dict[str, Any]) -> Dict[str, Any]:
    """Map the sectioned YAML layout onto AppSettings field names."""
    section_keys = {
        "app": {"name": "app_name", "version": "app_version"},
        "logging": {
            "level": "log_level",
            "max_file_size_mb": "log_max_file_size_mb",
            "backup_count": "log_backup_count",
        },
        "llm": {"model_name": "llm_model_name", "temperature": "llm_temperature"},
        "retry": {
            "max_attempts": "retry_max_attempts",
            "initial_delay_seconds": "retry_initial_delay_seconds",
            "backoff_factor": "retry_backoff_factor",
        },
    }
    known = {f.name for f in fields(AppSettings)}
    values = {}
    for section, keys in section_keys.items():
        for key, value in (config.get(section) or {}).items():
            field_name = keys.get(key)
            if field_name in known:
                values[field_name] = value
    return values


# Global settings instance
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings.load()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
