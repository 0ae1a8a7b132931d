"""Pydantic configuration models for checkwatch.

The configuration hierarchy follows this structure:
- Config: Root configuration
- SystemConfig: Logging level and deployment environment
- MonitorConfig: Poll timing and limits
- AccountConfig: GitHub credentials per API endpoint
- RepositoryConfig: Locally known repositories and their GitHub remotes

Environment variables are substituted using the format ${VAR_NAME} with
optional defaults: ${VAR_NAME:default_value}
"""

import os
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.repository import (
    GITHUB_API_ENDPOINT,
    Account,
    GitHubRepository,
    Repository,
)

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class BaseConfigModel(BaseModel):
    """Base configuration model with environment variable substitution."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def substitute_env_vars(cls, values: Any) -> Any:
        """Substitute environment variables in string values.

        Supports formats:
        - ${VAR_NAME} - Required environment variable
        - ${VAR_NAME:default} - Optional with default value

        Args:
            values: Raw configuration values

        Returns:
            Configuration values with environment variables substituted

        Raises:
            ValueError: If required environment variable is missing
        """
        if not isinstance(values, dict):
            return values

        def replacer(match: re.Match[str]) -> str:
            var_name, default_value = match.group(1), match.group(2)

            env_value = os.getenv(var_name)
            if env_value is not None:
                return env_value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Required environment variable '{var_name}' not found")

        def substitute_value(value: Any) -> Any:
            if isinstance(value, str):
                return _ENV_VAR_PATTERN.sub(replacer, value)
            elif isinstance(value, dict):
                return {k: substitute_value(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [substitute_value(item) for item in value]
            else:
                return value

        return {key: substitute_value(value) for key, value in values.items()}


class SystemConfig(BaseConfigModel):
    """Core system configuration settings."""

    log_level: LogLevel = Field(
        default=LogLevel.INFO, description="System-wide logging level"
    )

    environment: str = Field(
        default="development",
        description="Deployment environment (development, staging, production)",
    )


class MonitorConfig(BaseConfigModel):
    """Check monitor timing and limits."""

    poll_interval_seconds: float = Field(
        default=60.0, gt=0, le=3600, description="Seconds between poll cycles"
    )

    pull_request_limit: int = Field(
        default=3, ge=1, le=100, description="Maximum pull requests per cycle"
    )

    fetch_timeout_seconds: float = Field(
        default=30.0, gt=0, le=600, description="Timeout of every remote fetch"
    )

    lookback_seconds: float = Field(
        default=0.0,
        ge=0,
        le=86400,
        description="Extra window subtracted from the previous check time",
    )

    initial_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        le=3600,
        description="Seconds between selecting a repository and its first cycle",
    )


class AccountConfig(BaseConfigModel):
    """Credentials of a GitHub user on one API endpoint."""

    login: str = Field(description="GitHub login; only this author's PRs are watched")

    token: str = Field(description="Personal access token")

    endpoint: str = Field(
        default=GITHUB_API_ENDPOINT, description="REST API base URL of the host"
    )

    @field_validator("login", "token")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Validate that credentials are not blank."""
        if not v or v.strip() == "":
            raise ValueError("Account login and token cannot be empty")
        return v.strip()

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Validate endpoint URL format."""
        if not v.startswith(("https://", "http://")):
            raise ValueError("Account endpoint must be an http(s) URL")
        return v.rstrip("/")

    def to_account(self) -> Account:
        """Build the runtime account."""
        return Account(login=self.login, endpoint=self.endpoint, token=self.token)


class RepositoryConfig(BaseConfigModel):
    """A locally known repository."""

    name: str = Field(description="Display name, also used by selected_repository")

    path: str | None = Field(default=None, description="Local working copy path")

    url: str | None = Field(
        default=None,
        description="GitHub repository URL; without it the repository is not monitored",
    )

    @field_validator("url")
    @classmethod
    def validate_repository_url(cls, v: str | None) -> str | None:
        """Validate repository URL format."""
        if v is None:
            return v
        GitHubRepository.from_url(v)
        return v

    def to_repository(self) -> Repository:
        """Build the runtime repository."""
        github_repository = GitHubRepository.from_url(self.url) if self.url else None
        return Repository(
            name=self.name, path=self.path, github_repository=github_repository
        )


class Config(BaseConfigModel):
    """Root configuration."""

    system: SystemConfig = Field(
        default_factory=SystemConfig, description="Core system configuration"
    )

    monitor: MonitorConfig = Field(
        default_factory=MonitorConfig, description="Check monitor configuration"
    )

    accounts: list[AccountConfig] = Field(
        default_factory=list, description="GitHub accounts"
    )

    repositories: list[RepositoryConfig] = Field(
        description="Repository configurations"
    )

    selected_repository: str | None = Field(
        default=None,
        description="Repository to monitor, defaults to the first configured one",
    )

    @field_validator("repositories")
    @classmethod
    def validate_repositories_not_empty(
        cls, v: list[RepositoryConfig]
    ) -> list[RepositoryConfig]:
        """Ensure at least one repository is configured."""
        if not v:
            raise ValueError("At least one repository must be configured")
        return v

    @model_validator(mode="after")
    def validate_consistent_configuration(self) -> "Config":
        """Validate cross-field consistency."""
        names = [repo.name for repo in self.repositories]
        if len(set(names)) != len(names):
            raise ValueError("Repository names must be unique")

        if self.selected_repository is not None and self.selected_repository not in names:
            raise ValueError(
                f"Selected repository '{self.selected_repository}' "
                "not found in repositories"
            )

        return self

    def get_selected_repository(self) -> RepositoryConfig:
        """Get the repository the worker monitors."""
        if self.selected_repository is None:
            return self.repositories[0]
        for repo in self.repositories:
            if repo.name == self.selected_repository:
                return repo
        raise ValueError(f"Repository '{self.selected_repository}' not configured")
