"""Jira Cloud access for jiratrack.

Provides JiraClient, the only component that talks to the network.
"""

from jiratrack.jira._api import JiraClient
from jiratrack.jira._api import comment_document
from jiratrack.jira._api import format_started

__all__ = ["JiraClient", "comment_document", "format_started"]
