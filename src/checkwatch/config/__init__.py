"""Configuration management for checkwatch.

Usage:
    from checkwatch.config import ConfigurationLoader

    config = ConfigurationLoader().load_from_file("config.yaml")
    repository = config.get_selected_repository().to_repository()
"""

from .exceptions import (
    ConfigurationError,
    ConfigurationFileError,
    ConfigurationValidationError,
    MissingAccountError,
)
from .loader import ConfigurationLoader
from .models import (
    AccountConfig,
    BaseConfigModel,
    Config,
    LogLevel,
    MonitorConfig,
    RepositoryConfig,
    SystemConfig,
)

__all__ = [
    "AccountConfig",
    "BaseConfigModel",
    "Config",
    "ConfigurationError",
    "ConfigurationFileError",
    "ConfigurationLoader",
    "ConfigurationValidationError",
    "LogLevel",
    "MissingAccountError",
    "MonitorConfig",
    "RepositoryConfig",
    "SystemConfig",
]
