"""Pydantic models for jiratrack configuration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator

DEFAULT_JQL = "assignee = currentUser() AND statusCategory != Done ORDER BY updated DESC"


class AppConfig(BaseModel):
    """Root application configuration.

    The three credentials are required; the remaining settings tune the
    issue query and the HTTP client. An explicit jql wins over project,
    which narrows the default query to one project key.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    atlassian_url: str = Field(..., min_length=1)
    user_email: str = Field(..., min_length=1)
    user_api_token: str = Field(..., min_length=1)
    project: str | None = None
    jql: str | None = None
    max_results: int = Field(default=50, ge=1, le=5000)
    request_timeout: float = Field(default=30.0, gt=0)

    @field_validator("atlassian_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("https://", "http://")):
            raise ValueError("must start with http:// or https://")
        return value

    @field_validator("user_email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = value.strip()
        if "@" not in value:
            raise ValueError("must be an email address")
        return value

    @field_validator("user_api_token")
    @classmethod
    def _strip_token(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("project", "jql")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    def resolved_jql(self) -> str:
        """Query used to list the user's issues."""
        if self.jql:
            return self.jql
        if self.project:
            return f'project = "{self.project}" AND {DEFAULT_JQL}'
        return DEFAULT_JQL

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        return cls.model_validate(data)
