"""Configuration loading and validation."""

from .loader import find_missing_settings, load_config, warn_missing_settings
from .schema import AppConfig, LoggingConfig, MattermostConfig

__all__ = [
    # Loader
    "load_config",
    "find_missing_settings",
    "warn_missing_settings",
    # Root config
    "AppConfig",
    # Sub-configs
    "MattermostConfig",
    "LoggingConfig",
]
