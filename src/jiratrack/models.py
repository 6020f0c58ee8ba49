"""Data models for Jira issues and worklog drafts.

Issue validates the Jira REST search payload; WorklogDraft is the
in-memory time entry composed in the session.
"""

from __future__ import annotations

import typing as t
from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import model_validator


class Issue(BaseModel):
    """Jira issue as shown in the issue table.

    Accepts either flat keyword arguments or a raw issue object from
    /rest/api/3/search/jql, where the display values live under "fields".

    Attributes:
        key: Issue key (e.g., "PROJ-123")
        summary: Issue title
        status: Status name
        time_spent: Jira's formatted time spent (e.g., "1h 30m")
        assignee: Assignee display name, empty when unassigned
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., pattern=r"^[A-Za-z][A-Za-z0-9_]*-\d+$")
    summary: str = ""
    status: str = "Unknown"
    time_spent: str = "0h"
    assignee: str = ""

    @model_validator(mode="before")
    @classmethod
    def _flatten_fields(cls, data: t.Any) -> t.Any:
        if not isinstance(data, dict) or "fields" not in data:
            return data
        fields = data.get("fields") or {}
        if not isinstance(fields, dict):
            raise ValueError("issue fields must be an object")
        status = fields.get("status") or {}
        timetracking = fields.get("timetracking") or {}
        assignee = fields.get("assignee") or {}
        return {
            "key": data.get("key"),
            "summary": fields.get("summary") or "",
            "status": status.get("name", "Unknown") if isinstance(status, dict) else "Unknown",
            "time_spent": (
                (timetracking.get("timeSpent") or "0h") if isinstance(timetracking, dict) else "0h"
            ),
            "assignee": assignee.get("displayName", "") if isinstance(assignee, dict) else "",
        }

    def title_line(self) -> str:
        """Return the "[KEY] summary" line copied to the clipboard."""
        return f"[{self.key}] {self.summary}"


@dataclass(frozen=True, slots=True)
class WorklogDraft:
    """Time entry being composed for one issue.

    Attributes:
        issue_key: Key of the issue the time is logged against
        duration: Whole minutes, never negative
        comment: Optional free text
        started_at: Timezone-aware start of the logged work
        from_timer: True when prefilled from the running timer
    """

    issue_key: str
    started_at: datetime
    duration: int = 0
    comment: str = ""
    from_timer: bool = False

    @property
    def seconds(self) -> int:
        return self.duration * 60


def format_minutes(minutes: int) -> str:
    """Format minutes the way Jira displays durations.

    Example:
        format_minutes(90)   # "1h 30m"
        format_minutes(45)   # "45m"
        format_minutes(0)    # "0m"
    """
    hours, rest = divmod(minutes, 60)
    if hours and rest:
        return f"{hours}h {rest}m"
    if hours:
        return f"{hours}h"
    return f"{rest}m"


def parse_minutes(text: str) -> int | None:
    """Parse duration input as whole minutes.

    Empty text is zero. Returns None for anything that is not a
    non-negative integer.
    """
    text = text.strip()
    if not text:
        return 0
    if not text.isascii() or not text.isdigit():
        return None
    return int(text)
