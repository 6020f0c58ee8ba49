"""Custom exceptions for jiratrack."""

from __future__ import annotations

import typing as t

ErrorKind = t.Literal["network", "auth", "validation", "malformed", "http", "unexpected"]


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


class JiraError(Exception):
    """Base exception for failed Jira API calls.

    Attributes:
        kind: Failure classification shown to the user and logged
        status: HTTP status code, when a response was received
        message: Human readable description
    """

    action = "Jira request"

    def __init__(self, kind: ErrorKind, message: str, status: int | None = None) -> None:
        self.kind = kind
        self.status = status
        self.message = message
        super().__init__(f"{self.action} failed ({kind}): {message}")

    def user_message(self) -> str:
        """Return the text displayed in the status line."""
        if self.kind == "auth":
            return f"{self.action} failed: authentication rejected, check your email and API token"
        if self.kind == "network":
            return f"{self.action} failed: network error ({self.message})"
        return f"{self.action} failed: {self.message}"


class FetchError(JiraError):
    """Raised when the assigned issues cannot be fetched."""

    action = "Fetching issues"


class SubmitError(JiraError):
    """Raised when a worklog entry cannot be posted."""

    action = "Submitting worklog"


AUTH_STATUSES = frozenset({401, 403})


def classify_status(status: int) -> ErrorKind:
    """Map a non-success HTTP status to an error kind."""
    if status in AUTH_STATUSES:
        return "auth"
    if status == 400:
        return "validation"
    return "http"
