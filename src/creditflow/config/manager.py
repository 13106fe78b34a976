"""Credential configuration for the extraction service."""
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from creditflow.utils.exceptions import AuthError

API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")
API_KEY_PREFIX = "AIza"


@dataclass
class Config:
    """Runtime configuration."""
    gemini_api_key: Optional[str] = None
    log_level: Optional[str] = None


class ConfigManager:
    """Resolves configuration from the hosting environment."""

    def __init__(self, environ=None):
        self.environ = os.environ if environ is None else environ

    def load_config(self) -> Config:
        """Load configuration from environment variables."""
        api_key = None
        for name in API_KEY_ENV_VARS:
            value = self.environ.get(name)
            if value:
                api_key = value
                break

        return Config(
            gemini_api_key=api_key,
            log_level=self.environ.get("LOG_LEVEL")
        )

    def validate_config(self, config: Config) -> Tuple[bool, str]:
        """Validate configuration values."""
        try:
            require_api_key(config.gemini_api_key)
        except AuthError as e:
            return False, e.message

        return True, "Configuration is valid"


def require_api_key(api_key: Optional[str]) -> str:
    """Return a usable API key or raise AuthError describing what is wrong."""
    if api_key is None or not api_key.strip():
        raise AuthError(
            "Gemini API key not found. Set the GEMINI_API_KEY environment variable "
            "to your key from Google AI Studio and restart the application."
        )

    api_key = api_key.strip()
    if not api_key.startswith(API_KEY_PREFIX):
        raise AuthError(
            f"Gemini API key is malformed: keys start with '{API_KEY_PREFIX}'. "
            "Check that GEMINI_API_KEY holds the key itself and not another credential."
        )

    return api_key
