"""Shared pytest fixtures and configuration."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from jiratrack.models import Issue
from jiratrack.session import IssuesFetched
from jiratrack.session import SessionState
from jiratrack.session import initial_state
from jiratrack.session import transition
from tests.support.factories import make_issues
from tests.support.stubs import StubJiraBackend


@pytest.fixture(autouse=True)
def isolated_log_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep log files written during tests out of the home directory."""
    monkeypatch.setattr("jiratrack.logging_config.LOG_DIR", tmp_path / "logs")
    yield


@pytest.fixture
def three_issues() -> tuple[Issue, ...]:
    return make_issues(3)


@pytest.fixture
def browsing_state(three_issues: tuple[Issue, ...]) -> SessionState:
    """Browsing with issues [PROJ-1, PROJ-2, PROJ-3] and the first highlighted."""
    return transition(initial_state(), IssuesFetched(three_issues)).state


@pytest.fixture
def empty_browsing_state() -> SessionState:
    return transition(initial_state(), IssuesFetched(())).state


@pytest.fixture
def stub_backend(three_issues: tuple[Issue, ...]) -> StubJiraBackend:
    return StubJiraBackend(issues=list(three_issues))
