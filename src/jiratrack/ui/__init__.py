"""Textual user interface for jiratrack."""

from jiratrack.ui.app import JiraTrackApp

__all__ = ["JiraTrackApp"]
