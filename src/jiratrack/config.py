"""Configuration management for jiratrack.

Reads the YAML or TOML config file and environment overrides.
Priority: environment variables > config file.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from jiratrack import get_logger
from jiratrack.config_models import AppConfig
from jiratrack.exceptions import ConfigError

logger = get_logger(__name__)

# Default config locations (in priority order)
CONFIG_PATHS = [
    Path.home() / ".config" / "jiratrack" / "config.yaml",
    Path.home() / ".config" / "jiratrack" / "config.toml",
    Path.home() / ".jiratrack.yaml",
]

ENV_VARS = {
    "JIRATRACK_ATLASSIAN_URL": "atlassian_url",
    "JIRATRACK_USER_EMAIL": "user_email",
    "JIRATRACK_USER_API_TOKEN": "user_api_token",
    "JIRATRACK_PROJECT": "project",
    "JIRATRACK_JQL": "jql",
}


class Config:
    """Configuration holder for jiratrack.

    Config file format (YAML):
        atlassian_url: "https://company.atlassian.net"
        user_email: "me@company.com"
        user_api_token: "your-api-token"
        project: "PROJ"  # optional, narrows the default query
        jql: "assignee = currentUser() AND sprint in openSprints()"  # optional

    A config.toml with the same keys is read the same way.

    Example:
        config = Config.load()
        client = JiraClient.from_config(config)
    """

    def __init__(self, model: AppConfig, path: Path | None = None) -> None:
        self._model = model
        self.path = path

    @classmethod
    def load(cls, path: Path | None = None) -> Config:
        """Load configuration from file and environment.

        Args:
            path: Optional explicit config file path. If not provided,
                  searches default locations.

        Raises:
            ConfigError: If the file is missing, unreadable or invalid.
        """
        data: dict[str, Any] = {}
        source: Path | None = None

        if path is not None:
            if not path.exists():
                raise ConfigError(f"Config file not found: {path}")
            source = path
        else:
            source = next((p for p in CONFIG_PATHS if p.exists()), None)

        if source is not None:
            logger.debug("Loading config from", path=str(source))
            data = cls._load_file(source)

        data = cls._apply_env_vars(data)

        if source is None and not data:
            locations = ", ".join(str(p) for p in CONFIG_PATHS)
            raise ConfigError(f"Config file not found. Create one at {locations}")

        return cls(cls._validate_model(data), source)

    @staticmethod
    def _validate_model(data: dict[str, Any]) -> AppConfig:
        """Validate raw config data with the pydantic schema.

        Raises:
            ConfigError: If validation fails.
        """
        try:
            return AppConfig.from_dict(data)
        except ValidationError as e:
            messages = []
            for error in e.errors():
                location = ".".join(str(part) for part in error["loc"])
                messages.append(f"- {location}: {error['msg']}")
            details = "\n".join(messages)
            raise ConfigError(f"Invalid config format:\n{details}") from e

    @staticmethod
    def _load_file(path: Path) -> dict[str, Any]:
        try:
            if path.suffix == ".toml":
                with open(path, "rb") as f:
                    data = tomllib.load(f)
            else:
                with open(path, encoding="utf-8") as f:
                    data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to read config file {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return data

    @staticmethod
    def _apply_env_vars(data: dict[str, Any]) -> dict[str, Any]:
        for env_name, key in ENV_VARS.items():
            value = os.getenv(env_name)
            if value:
                data[key] = value
        return data

    @property
    def atlassian_url(self) -> str:
        return self._model.atlassian_url

    @property
    def user_email(self) -> str:
        return self._model.user_email

    @property
    def user_api_token(self) -> str:
        return self._model.user_api_token

    @property
    def jql(self) -> str:
        return self._model.resolved_jql()

    @property
    def max_results(self) -> int:
        return self._model.max_results

    @property
    def request_timeout(self) -> float:
        return self._model.request_timeout
