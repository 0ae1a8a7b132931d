"""Configuration loading and management.

This module finds the configuration file, loads it from YAML and validates
it beyond what the models check on their own.

The loading hierarchy is:
1. Default values from Pydantic models
2. Configuration file (YAML)
3. Environment variables substituted into file values
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import (
    ConfigurationFileError,
    ConfigurationValidationError,
    MissingAccountError,
)
from .models import Config

CONFIG_PATH_ENV_VAR = "CHECKWATCH_CONFIG_PATH"
DEFAULT_CONFIG_FILENAME = "config.yaml"


class ConfigurationLoader:
    """Handles loading and validation of configuration from various sources."""

    def __init__(self) -> None:
        """Initialize configuration loader."""
        self._config: Config | None = None
        self._config_file_path: Path | None = None

    def load_from_file(self, config_path: str | Path, validate: bool = True) -> Config:
        """Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file
            validate: Whether to run the checks beyond model validation

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationFileError: If file cannot be read or parsed
            ConfigurationValidationError: If configuration validation fails
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigurationFileError(
                f"Configuration file not found: {config_path}",
                file_path=str(config_path),
            )

        if not config_path.is_file():
            raise ConfigurationFileError(
                f"Configuration path is not a file: {config_path}",
                file_path=str(config_path),
            )

        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = yaml.safe_load(f)

            if config_data is None:
                config_data = {}

        except yaml.YAMLError as e:
            raise ConfigurationFileError(
                f"Failed to parse YAML configuration: {e}", file_path=str(config_path)
            ) from e
        except OSError as e:
            raise ConfigurationFileError(
                f"Failed to read configuration file: {e}", file_path=str(config_path)
            ) from e

        if not isinstance(config_data, dict):
            raise ConfigurationFileError(
                "Configuration file must contain a mapping", file_path=str(config_path)
            )

        config = self.load_from_dict(config_data, validate=validate)
        self._config_file_path = config_path.resolve()
        return config

    def load_from_dict(
        self, config_data: dict[str, Any], validate: bool = True
    ) -> Config:
        """Load configuration from a dictionary.

        Args:
            config_data: Configuration data dictionary
            validate: Whether to run the checks beyond model validation

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationValidationError: If configuration validation fails
        """
        try:
            config = Config(**config_data)
        except ValidationError as e:
            raise ConfigurationValidationError.from_pydantic(e) from e
        except TypeError as e:
            raise ConfigurationValidationError(
                f"Configuration validation failed: {e}"
            ) from e

        if validate:
            self._validate_configuration(config)

        self._config = config
        self._config_file_path = None
        return config

    def find_config_file(
        self, filename: str = DEFAULT_CONFIG_FILENAME
    ) -> Path | None:
        """Find configuration file in standard locations.

        Search order:
        1. Current working directory
        2. CHECKWATCH_CONFIG_PATH environment variable
        3. ~/.checkwatch/
        4. /etc/checkwatch/

        Args:
            filename: Configuration filename to search for

        Returns:
            Path to found configuration file, or None if not found
        """
        search_paths = [Path.cwd() / filename]

        env_path_str = os.getenv(CONFIG_PATH_ENV_VAR)
        if env_path_str:
            env_path = Path(env_path_str)
            if env_path.is_file():
                search_paths.append(env_path)
            else:
                search_paths.append(env_path / filename)

        search_paths.append(Path.home() / ".checkwatch" / filename)
        search_paths.append(Path("/etc/checkwatch") / filename)

        for path in search_paths:
            if path.exists() and path.is_file():
                return path

        return None

    def auto_load(self, config_filename: str = DEFAULT_CONFIG_FILENAME) -> Config:
        """Automatically load configuration from standard locations.

        Raises:
            ConfigurationFileError: If no configuration file is found
            ConfigurationValidationError: If configuration validation fails
        """
        config_path = self.find_config_file(config_filename)

        if config_path is None:
            raise ConfigurationFileError(
                f"No configuration file '{config_filename}' found in standard locations"
            )

        return self.load_from_file(config_path)

    def _validate_configuration(self, config: Config) -> None:
        """Check that the selected repository can actually be monitored.

        Raises:
            MissingAccountError: If no account serves the repository's endpoint
        """
        repository = config.get_selected_repository()
        if repository.url is None:
            return

        github_repository = repository.to_repository().github_repository
        if github_repository is None:
            return

        endpoints = {account.endpoint.lower() for account in config.accounts}
        if github_repository.endpoint.lower() not in endpoints:
            raise MissingAccountError(repository.name, github_repository.endpoint)

    @property
    def config(self) -> Config | None:
        """Get the loaded configuration."""
        return self._config

    @property
    def config_file_path(self) -> Path | None:
        """Get the path to the loaded configuration file."""
        return self._config_file_path

    @property
    def is_loaded(self) -> bool:
        """Check if configuration has been loaded."""
        return self._config is not None

    def get_loading_info(self) -> dict[str, Any]:
        """Get information about the loaded configuration, without secrets."""
        summary = None
        if self._config is not None:
            summary = {
                "environment": self._config.system.environment,
                "log_level": self._config.system.log_level.value,
                "accounts": [account.login for account in self._config.accounts],
                "repositories": [repo.name for repo in self._config.repositories],
                "selected_repository": self._config.get_selected_repository().name,
            }

        return {
            "loaded": self.is_loaded,
            "config_file": str(self._config_file_path)
            if self._config_file_path
            else None,
            "config_summary": summary,
        }
