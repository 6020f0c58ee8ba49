"""Protocol for the Jira backend the session driver depends on."""

from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:
    from datetime import datetime

    from jiratrack.models import Issue


@t.runtime_checkable
class JiraBackend(t.Protocol):
    """Operations the event loop runs on behalf of the session.

    JiraClient is the production implementation; tests substitute stubs.
    """

    async def fetch_assigned_issues(self) -> list[Issue]:
        """Return the issues assigned to the user, raising FetchError on failure."""
        ...

    async def submit_worklog(
        self,
        issue_key: str,
        duration: int,
        comment: str,
        started_at: datetime,
    ) -> str:
        """Post a worklog and return its id, raising SubmitError on failure."""
        ...
