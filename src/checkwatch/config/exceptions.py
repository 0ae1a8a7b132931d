"""Errors raised while loading the checkwatch configuration.

All of them are fatal at startup: the worker logs the message and exits.
"""

from typing import Any

from pydantic import ValidationError


class ConfigurationError(Exception):
    """Base exception for all configuration-related errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationFileError(ConfigurationError):
    """The configuration file is missing, unreadable or not a YAML mapping."""

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.file_path = file_path


class ConfigurationValidationError(ConfigurationError):
    """The configuration was parsed but its values are invalid."""

    def __init__(
        self,
        message: str,
        validation_errors: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ):
        """Initialize configuration validation error.

        Args:
            message: Human-readable error message
            validation_errors: One ``location: problem`` line per invalid value
            details: Optional dictionary with additional error details
        """
        super().__init__(message, details)
        self.validation_errors = validation_errors or []

    @classmethod
    def from_pydantic(cls, error: ValidationError) -> "ConfigurationValidationError":
        """Summarize a pydantic error as ``accounts.0.token: ...`` lines."""
        lines = [
            f"{'.'.join(str(part) for part in item['loc']) or 'config'}: {item['msg']}"
            for item in error.errors()
        ]
        return cls(
            f"Configuration validation failed: {'; '.join(lines)}",
            validation_errors=lines,
        )


class MissingAccountError(ConfigurationValidationError):
    """No account is configured for the selected repository's API endpoint."""

    def __init__(self, repository_name: str, endpoint: str):
        super().__init__(
            f"No account configured for endpoint {endpoint} "
            f"of repository '{repository_name}'",
            details={"repository": repository_name, "endpoint": endpoint},
        )
        self.repository_name = repository_name
        self.endpoint = endpoint
