"""Jira Cloud REST API client.

Uses REST API v3 with Basic auth (account email + API token) for the two
calls jiratrack needs: searching assigned issues and posting worklogs.
"""

from __future__ import annotations

import base64
import json
import typing as t
from datetime import datetime

import aiohttp
from pydantic import ValidationError

from jiratrack import get_logger
from jiratrack.config_models import DEFAULT_JQL
from jiratrack.exceptions import FetchError
from jiratrack.exceptions import JiraError
from jiratrack.exceptions import SubmitError
from jiratrack.exceptions import classify_status
from jiratrack.models import Issue

if t.TYPE_CHECKING:
    from jiratrack.config import Config

logger = get_logger(__name__)

SEARCH_ENDPOINT = "/rest/api/3/search/jql"
WORKLOG_ENDPOINT = "/rest/api/3/issue/{key}/worklog"
ISSUE_FIELDS = "summary,status,timetracking,assignee"
PAGE_SIZE = 50


def format_started(started_at: datetime) -> str:
    """Format a timestamp the way the worklog API expects.

    Example:
        format_started(datetime(2024, 5, 1, 9, 30, tzinfo=UTC))
        # "2024-05-01T09:30:00.000+0000"
    """
    if started_at.tzinfo is None:
        started_at = started_at.astimezone()
    millis = started_at.microsecond // 1000
    return f"{started_at:%Y-%m-%dT%H:%M:%S}.{millis:03d}{started_at:%z}"


def comment_document(comment: str) -> dict[str, t.Any]:
    """Wrap plain text in an Atlassian Document Format paragraph."""
    return {
        "type": "doc",
        "version": 1,
        "content": [
            {
                "type": "paragraph",
                "content": [{"type": "text", "text": comment}],
            }
        ],
    }


def _error_detail(status: int, body: str) -> str:
    """Extract Jira's error messages from a failed response body."""
    try:
        data = json.loads(body)
    except ValueError:
        data = None

    if isinstance(data, dict):
        messages = [str(m) for m in data.get("errorMessages") or []]
        errors = data.get("errors") or {}
        if isinstance(errors, dict):
            messages.extend(f"{field}: {msg}" for field, msg in errors.items())
        if messages:
            return "; ".join(messages)

    body = body.strip()
    return f"HTTP {status}: {body[:200]}" if body else f"HTTP {status}"


class JiraClient:
    """Client for the Jira Cloud REST API.

    Every call opens its own aiohttp session, so a call abandoned on quit
    leaves nothing to clean up.

    Example:
        client = JiraClient(
            base_url="https://company.atlassian.net",
            email="me@company.com",
            api_token="token",
        )
        issues = await client.fetch_assigned_issues()
        worklog_id = await client.submit_worklog("PROJ-1", 30, "", started_at)
    """

    def __init__(
        self,
        base_url: str,
        email: str,
        api_token: str,
        *,
        jql: str = DEFAULT_JQL,
        max_results: int = 50,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.email = email
        self.api_token = api_token
        self.jql = jql
        self.max_results = max_results
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Config) -> JiraClient:
        return cls(
            config.atlassian_url,
            config.user_email,
            config.user_api_token,
            jql=config.jql,
            max_results=config.max_results,
            timeout=config.request_timeout,
        )

    def _get_auth_header_value(self) -> str:
        auth_str = f"{self.email}:{self.api_token}"
        auth_bytes = base64.b64encode(auth_str.encode()).decode()
        return f"Basic {auth_bytes}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": self._get_auth_header_value(),
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        error_cls: type[JiraError],
        *,
        params: dict[str, str] | None = None,
        payload: dict[str, t.Any] | None = None,
    ) -> t.Any:
        """Send one request and return the decoded JSON body.

        Raises:
            error_cls: Classified failure for transport errors, non-2xx
                responses and bodies that are not JSON.
        """
        url = f"{self.base_url}{path}"
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        try:
            async with (
                aiohttp.ClientSession(timeout=timeout) as session,
                session.request(
                    method,
                    url,
                    headers=self._headers(),
                    params=params,
                    json=payload,
                ) as resp,
            ):
                if not 200 <= resp.status < 300:
                    text = await resp.text()
                    logger.warning(
                        "Jira request rejected",
                        method=method,
                        path=path,
                        status=resp.status,
                        error=text[:200],
                    )
                    raise error_cls(
                        classify_status(resp.status),
                        _error_detail(resp.status, text),
                        status=resp.status,
                    )

                try:
                    return await resp.json()
                except (aiohttp.ContentTypeError, ValueError) as e:
                    raise error_cls("malformed", "response was not valid JSON") from e
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.warning("Jira request failed", method=method, path=path, error=repr(e))
            raise error_cls("network", str(e) or type(e).__name__) from e

    async def fetch_assigned_issues(self) -> list[Issue]:
        """Fetch the issues matched by the configured JQL.

        Follows nextPageToken until max_results issues are collected or
        the search is exhausted.

        Raises:
            FetchError: If the search fails or returns an unexpected shape.
        """
        logger.info("Fetching Jira issues", jql=self.jql)
        issues: list[Issue] = []
        page_token: str | None = None

        while len(issues) < self.max_results:
            params = {
                "jql": self.jql,
                "fields": ISSUE_FIELDS,
                "maxResults": str(min(PAGE_SIZE, self.max_results - len(issues))),
            }
            if page_token:
                params["nextPageToken"] = page_token

            data = await self._request("GET", SEARCH_ENDPOINT, FetchError, params=params)
            if not isinstance(data, dict) or not isinstance(data.get("issues"), list):
                raise FetchError("malformed", "search response has no issue list")

            try:
                issues.extend(Issue.model_validate(item) for item in data["issues"])
            except ValidationError as e:
                raise FetchError("malformed", f"unexpected issue format: {e.error_count()} errors") from e

            page_token = data.get("nextPageToken")
            if not page_token or data.get("isLast", False) or not data["issues"]:
                break

        logger.info("Fetched Jira issues", count=len(issues))
        return issues

    async def submit_worklog(
        self,
        issue_key: str,
        duration: int,
        comment: str,
        started_at: datetime,
    ) -> str:
        """Post a worklog entry and return the created worklog id.

        Args:
            issue_key: Issue to log against
            duration: Whole minutes, must be positive
            comment: Optional comment, omitted when blank
            started_at: When the logged work started

        Raises:
            SubmitError: If the server rejects the entry or cannot be reached.
        """
        if duration <= 0:
            raise SubmitError("validation", "duration must be positive")

        payload: dict[str, t.Any] = {
            "started": format_started(started_at),
            "timeSpentSeconds": duration * 60,
        }
        if comment.strip():
            payload["comment"] = comment_document(comment.strip())

        logger.info("Submitting worklog", issue_key=issue_key, minutes=duration)
        data = await self._request(
            "POST",
            WORKLOG_ENDPOINT.format(key=issue_key),
            SubmitError,
            payload=payload,
        )

        worklog_id = data.get("id") if isinstance(data, dict) else None
        if not worklog_id:
            raise SubmitError("malformed", "worklog response has no id")

        logger.info("Worklog submitted", issue_key=issue_key, worklog_id=str(worklog_id))
        return str(worklog_id)
