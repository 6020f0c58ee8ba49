"""Tests for the session state machine.

Drives transition() directly with synthetic events; no I/O involved.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from jiratrack.search import MAX_SEARCH_LENGTH
from jiratrack.session import AdjustDuration
from jiratrack.session import BeginLogging
from jiratrack.session import Cancel
from jiratrack.session import Confirm
from jiratrack.session import CopyIssue
from jiratrack.session import CopyToClipboard
from jiratrack.session import DraftField
from jiratrack.session import EditComment
from jiratrack.session import EditDuration
from jiratrack.session import EditSearch
from jiratrack.session import FocusSearch
from jiratrack.session import FetchIssues
from jiratrack.session import IssuesFetched
from jiratrack.session import IssuesFetchFailed
from jiratrack.session import Mode
from jiratrack.session import MoveSelection
from jiratrack.session import Quit
from jiratrack.session import QuitApp
from jiratrack.session import Refresh
from jiratrack.session import SelectEdge
from jiratrack.session import SessionState
from jiratrack.session import SubmitWorklog
from jiratrack.session import SwitchField
from jiratrack.session import ToggleTimer
from jiratrack.session import WorklogSubmitFailed
from jiratrack.session import WorklogSubmitted
from jiratrack.session import initial_state
from jiratrack.session import start
from jiratrack.session import transition
from jiratrack.session import view
from tests.support.factories import BASE_TIME
from tests.support.factories import fetch_error
from tests.support.factories import make_issues
from tests.support.factories import make_searchable_issues
from tests.support.factories import submit_error


def run(state: SessionState, *events) -> SessionState:
    for event in events:
        state = transition(state, event).state
    return state


@pytest.fixture
def composing_state(browsing_state: SessionState) -> SessionState:
    return transition(browsing_state, BeginLogging(BASE_TIME)).state


@pytest.fixture
def confirming_state(composing_state: SessionState) -> SessionState:
    return run(composing_state, EditDuration("30"), EditComment("code review"), Confirm())


@pytest.fixture
def searchable_state() -> SessionState:
    """Browsing "Fix login redirect", "Add export button", "Update README"."""
    return transition(initial_state(), IssuesFetched(make_searchable_issues())).state


class TestLoading:
    """Tests for the initial load and refreshes."""

    def test_initial_state_is_loading_with_no_issues(self) -> None:
        state = initial_state()
        assert state.mode is Mode.LOADING
        assert state.issues == ()
        assert state.highlighted is None
        assert state.draft is None

    def test_start_requests_issue_fetch(self) -> None:
        result = start()
        assert result.state.mode is Mode.LOADING
        assert isinstance(result.command, FetchIssues)

    def test_fetch_success_enters_browsing_with_first_issue_highlighted(self, three_issues) -> None:
        result = transition(initial_state(), IssuesFetched(three_issues))

        assert result.state.mode is Mode.BROWSING
        assert result.state.issues == three_issues
        assert result.state.highlighted == 0
        assert result.command is None

    def test_fetch_success_with_no_issues_has_no_highlight(self) -> None:
        state = transition(initial_state(), IssuesFetched(())).state
        assert state.mode is Mode.BROWSING
        assert state.highlighted is None

    def test_fetch_failure_enters_browsing_with_error(self) -> None:
        state = transition(initial_state(), IssuesFetchFailed(fetch_error())).state

        assert state.mode is Mode.BROWSING
        assert state.issues == ()
        assert state.highlighted is None
        assert state.error
        assert "network" in state.error

    def test_auth_failure_message_mentions_credentials(self) -> None:
        state = transition(initial_state(), IssuesFetchFailed(fetch_error("auth", "401"))).state
        assert "API token" in state.error

    def test_refresh_keeps_issues_until_fetch_resolves(self, browsing_state) -> None:
        moved = transition(browsing_state, MoveSelection(1)).state
        result = transition(moved, Refresh())

        assert result.state.mode is Mode.LOADING
        assert result.state.issues == moved.issues
        assert result.state.highlighted == 1
        assert isinstance(result.command, FetchIssues)

    def test_refresh_replaces_issue_list_wholesale(self, browsing_state) -> None:
        new_issues = make_issues(2)
        state = run(browsing_state, SelectEdge(last=True), Refresh(), IssuesFetched(new_issues))

        assert state.issues == new_issues
        assert state.highlighted == 0

    def test_refresh_failure_empties_list(self, browsing_state) -> None:
        state = run(browsing_state, Refresh(), IssuesFetchFailed(fetch_error()))

        assert state.mode is Mode.BROWSING
        assert state.issues == ()
        assert state.highlighted is None
        assert state.error

    def test_successful_refresh_clears_error(self) -> None:
        failed = transition(initial_state(), IssuesFetchFailed(fetch_error())).state
        state = run(failed, Refresh(), IssuesFetched(make_issues(1)))
        assert state.error is None

    def test_user_input_ignored_while_loading(self) -> None:
        state = initial_state()
        for event in (MoveSelection(1), BeginLogging(BASE_TIME), Refresh(), Confirm()):
            result = transition(state, event)
            assert result.state == state
            assert result.command is None


class TestBrowsing:
    """Tests for selection movement and entering composition."""

    def test_down_presses_clamp_at_last_issue(self, browsing_state) -> None:
        indices = []
        state = browsing_state
        for _ in range(3):
            state = transition(state, MoveSelection(1)).state
            indices.append(state.highlighted)

        assert indices == [1, 2, 2]

    def test_up_at_first_issue_is_noop(self, browsing_state) -> None:
        state = transition(browsing_state, MoveSelection(-1)).state
        assert state.highlighted == 0

    def test_large_moves_clamp_to_bounds(self, browsing_state) -> None:
        assert transition(browsing_state, MoveSelection(10)).state.highlighted == 2
        assert transition(browsing_state, MoveSelection(-10)).state.highlighted == 0

    def test_select_edges(self, browsing_state) -> None:
        last = transition(browsing_state, SelectEdge(last=True)).state
        assert last.highlighted == 2
        first = transition(last, SelectEdge(last=False)).state
        assert first.highlighted == 0

    def test_move_on_empty_list_is_noop(self, empty_browsing_state) -> None:
        state = run(empty_browsing_state, MoveSelection(1), SelectEdge(last=True))
        assert state.highlighted is None

    def test_begin_logging_with_empty_list_is_noop(self, empty_browsing_state) -> None:
        result = transition(empty_browsing_state, BeginLogging(BASE_TIME))

        assert result.state.mode is Mode.BROWSING
        assert result.state.draft is None
        assert result.command is None

    def test_begin_logging_targets_highlighted_issue(self, browsing_state) -> None:
        state = run(browsing_state, MoveSelection(1), BeginLogging(BASE_TIME))

        assert state.mode is Mode.COMPOSING
        assert state.draft is not None
        assert state.draft.issue_key == "PROJ-2"
        assert state.draft.duration == 0
        assert state.draft.comment == ""
        assert state.draft.started_at == BASE_TIME
        assert state.focus is DraftField.DURATION

    def test_copy_issue_emits_clipboard_command(self, browsing_state) -> None:
        result = transition(browsing_state, CopyIssue())

        assert result.command == CopyToClipboard("[PROJ-1] Issue number 1")
        assert result.state.notice == "Copied PROJ-1 to clipboard"

    def test_copy_issue_on_empty_list_is_noop(self, empty_browsing_state) -> None:
        assert transition(empty_browsing_state, CopyIssue()).command is None

    def test_notice_cleared_by_next_user_event(self, browsing_state) -> None:
        copied = transition(browsing_state, CopyIssue()).state
        assert copied.notice is not None
        assert transition(copied, MoveSelection(1)).state.notice is None


class TestComposing:
    """Tests for editing, confirming and cancelling a draft."""

    def test_confirm_rejected_with_zero_duration(self, composing_state) -> None:
        result = transition(composing_state, Confirm())

        assert result.state.mode is Mode.COMPOSING
        assert result.command is None

    def test_set_duration_then_confirm_enters_confirming(self, composing_state) -> None:
        state = transition(composing_state, EditDuration("30")).state
        result = transition(state, Confirm())

        assert result.state.mode is Mode.CONFIRMING
        assert result.state.draft.duration == 30
        assert result.command == SubmitWorklog(result.state.draft)

    @pytest.mark.parametrize("text", ["abc", "-5", "1.5", "3 0", "½", "٣"])
    def test_invalid_duration_is_ignored(self, composing_state, text: str) -> None:
        state = transition(composing_state, EditDuration("45")).state
        after = transition(state, EditDuration(text)).state

        assert after.draft == state.draft
        assert after.error is None

    def test_clearing_duration_text_means_zero(self, composing_state) -> None:
        state = run(composing_state, EditDuration("5"), EditDuration(""))
        assert state.draft.duration == 0

    def test_adjust_duration(self, composing_state) -> None:
        state = run(composing_state, AdjustDuration(15), AdjustDuration(15), AdjustDuration(-15))
        assert state.draft.duration == 15

    def test_adjust_below_zero_is_ignored(self, composing_state) -> None:
        state = transition(composing_state, AdjustDuration(-15)).state
        assert state.draft.duration == 0

    def test_edit_comment(self, composing_state) -> None:
        state = transition(composing_state, EditComment("Pairing on PROJ-1")).state
        assert state.draft.comment == "Pairing on PROJ-1"

    def test_comment_with_control_characters_is_ignored(self, composing_state) -> None:
        state = transition(composing_state, EditComment("line\nbreak")).state
        assert state.draft.comment == ""

    def test_switch_field_toggles_focus(self, composing_state) -> None:
        once = transition(composing_state, SwitchField()).state
        twice = transition(once, SwitchField()).state

        assert once.focus is DraftField.COMMENT
        assert twice.focus is DraftField.DURATION

    def test_cancel_discards_draft(self, composing_state) -> None:
        state = run(composing_state, EditDuration("30"), Cancel())

        assert state.mode is Mode.BROWSING
        assert state.draft is None

    def test_missing_draft_is_ignored(self, composing_state) -> None:
        broken = replace(composing_state, draft=None)

        for event in (Confirm(), EditDuration("30"), Cancel()):
            result = transition(broken, event)
            assert result.state is broken
            assert result.command is None

    def test_browsing_events_ignored_while_composing(self, composing_state) -> None:
        for event in (MoveSelection(1), Refresh(), CopyIssue(), ToggleTimer(BASE_TIME)):
            result = transition(composing_state, event)
            assert result.state == composing_state
            assert result.command is None


class TestConfirming:
    """Tests for submission results."""

    def test_success_returns_to_browsing_without_draft(self, confirming_state) -> None:
        state = transition(confirming_state, WorklogSubmitted("50001")).state

        assert state.mode is Mode.BROWSING
        assert state.draft is None
        assert state.notice == "Logged 30m on PROJ-1"

    def test_failure_returns_to_composing_with_draft_intact(self, confirming_state) -> None:
        state = transition(confirming_state, WorklogSubmitFailed(submit_error())).state

        assert state.mode is Mode.COMPOSING
        assert state.draft == confirming_state.draft
        assert state.error
        assert view(state).error

    def test_retry_after_failure_submits_again(self, confirming_state) -> None:
        failed = transition(confirming_state, WorklogSubmitFailed(submit_error())).state
        result = transition(failed, Confirm())

        assert result.state.mode is Mode.CONFIRMING
        assert result.state.error is None
        assert isinstance(result.command, SubmitWorklog)

    def test_edits_and_confirm_ignored_while_submitting(self, confirming_state) -> None:
        for event in (EditDuration("90"), EditComment("x"), Confirm(), Cancel(), AdjustDuration(15)):
            result = transition(confirming_state, event)
            assert result.state.draft == confirming_state.draft
            assert result.state.mode is Mode.CONFIRMING
            assert result.command is None

    def test_missing_draft_is_ignored(self, confirming_state) -> None:
        broken = replace(confirming_state, draft=None)

        for event in (WorklogSubmitted("1"), WorklogSubmitFailed(submit_error())):
            result = transition(broken, event)
            assert result.state is broken
            assert result.command is None


class TestQuitAndStaleResults:
    """Tests for quit handling and results arriving in the wrong mode."""

    def test_quit_from_every_mode(self, browsing_state, composing_state, confirming_state) -> None:
        for state in (initial_state(), browsing_state, composing_state, confirming_state):
            result = transition(state, Quit())
            assert isinstance(result.command, QuitApp)
            assert result.state is state

    def test_stale_fetch_result_is_ignored(self, composing_state) -> None:
        result = transition(composing_state, IssuesFetched(make_issues(5)))
        assert result.state == composing_state

    def test_stale_submission_result_is_ignored(self, browsing_state) -> None:
        assert transition(browsing_state, WorklogSubmitted("1")).state == browsing_state
        failed = transition(browsing_state, WorklogSubmitFailed(submit_error())).state
        assert failed == browsing_state


class TestTimer:
    """Tests for the issue stopwatch."""

    def test_toggle_starts_and_stops_timer(self, browsing_state) -> None:
        started = transition(browsing_state, ToggleTimer(BASE_TIME)).state
        assert started.timer is not None
        assert started.timer.issue_key == "PROJ-1"
        assert started.notice == "Timer started on PROJ-1"

        stopped = transition(started, ToggleTimer(BASE_TIME)).state
        assert stopped.timer is None

    def test_timer_moves_to_other_issue(self, browsing_state) -> None:
        state = run(browsing_state, ToggleTimer(BASE_TIME), MoveSelection(1), ToggleTimer(BASE_TIME))
        assert state.timer.issue_key == "PROJ-2"

    def test_begin_logging_prefills_from_timer(self, browsing_state) -> None:
        later = BASE_TIME + timedelta(minutes=42, seconds=30)
        state = run(browsing_state, ToggleTimer(BASE_TIME), BeginLogging(later))

        assert state.draft.duration == 42
        assert state.draft.started_at == BASE_TIME
        assert state.draft.from_timer is True

    def test_begin_logging_on_other_issue_ignores_timer(self, browsing_state) -> None:
        later = BASE_TIME + timedelta(minutes=10)
        state = run(browsing_state, ToggleTimer(BASE_TIME), MoveSelection(1), BeginLogging(later))

        assert state.draft.issue_key == "PROJ-2"
        assert state.draft.duration == 0
        assert state.draft.from_timer is False

    def test_successful_submission_clears_timer(self, browsing_state) -> None:
        later = BASE_TIME + timedelta(minutes=25)
        state = run(
            browsing_state,
            ToggleTimer(BASE_TIME),
            BeginLogging(later),
            Confirm(),
            WorklogSubmitted("1"),
        )
        assert state.timer is None

    def test_cancelled_draft_keeps_timer(self, browsing_state) -> None:
        later = BASE_TIME + timedelta(minutes=25)
        state = run(browsing_state, ToggleTimer(BASE_TIME), BeginLogging(later), Cancel())
        assert state.timer is not None

    def test_timer_survives_refresh(self, browsing_state) -> None:
        state = run(browsing_state, ToggleTimer(BASE_TIME), Refresh(), IssuesFetched(()))
        assert state.timer is not None


class TestSearch:
    """Tests for fuzzy filtering of the browsed list."""

    def test_edit_search_filters_visible_issues(self, searchable_state) -> None:
        state = transition(searchable_state, EditSearch("export")).state

        assert state.search == "export"
        assert [issue.key for issue in state.visible] == ["PROJ-2"]
        assert state.highlighted == 0
        assert len(state.issues) == 3

    def test_highlight_resets_to_top_of_filtered_list(self, searchable_state) -> None:
        state = run(searchable_state, SelectEdge(last=True), EditSearch("login"))

        assert state.highlighted == 0
        assert state.highlighted_issue.key == "PROJ-1"

    def test_no_match_leaves_nothing_highlighted(self, searchable_state) -> None:
        state = transition(searchable_state, EditSearch("zzzzzz")).state

        assert state.visible == ()
        assert state.highlighted is None
        assert transition(state, BeginLogging(BASE_TIME)).state.mode is Mode.BROWSING

    def test_moves_are_bounded_by_filtered_list(self, searchable_state) -> None:
        state = run(searchable_state, EditSearch("export"), MoveSelection(5), SelectEdge(last=True))
        assert state.highlighted == 0

    def test_begin_logging_targets_filtered_issue(self, searchable_state) -> None:
        state = run(searchable_state, EditSearch("readme"), BeginLogging(BASE_TIME))

        assert state.mode is Mode.COMPOSING
        assert state.draft.issue_key == "PROJ-3"
        assert state.search_focused is False

    def test_clearing_search_restores_full_list(self, searchable_state) -> None:
        state = run(searchable_state, EditSearch("export"), EditSearch(""))

        assert state.visible == state.issues
        assert state.highlighted == 0

    def test_refresh_keeps_search(self, searchable_state) -> None:
        state = run(
            searchable_state,
            EditSearch("export"),
            Refresh(),
            IssuesFetched(make_searchable_issues() + make_issues(2)),
        )

        assert state.search == "export"
        assert [issue.key for issue in state.visible] == ["PROJ-2"]

    @pytest.mark.parametrize("text", ["tab\there", "x" * (MAX_SEARCH_LENGTH + 1)])
    def test_invalid_search_text_is_ignored(self, searchable_state, text: str) -> None:
        assert transition(searchable_state, EditSearch(text)).state == searchable_state

    def test_focus_search(self, searchable_state) -> None:
        focused = transition(searchable_state, FocusSearch(True)).state
        assert focused.search_focused is True
        assert transition(focused, FocusSearch(False)).state.search_focused is False

    def test_search_ignored_outside_browsing(self, composing_state) -> None:
        assert transition(composing_state, EditSearch("x")).state == composing_state

    def test_view_exposes_search(self, searchable_state) -> None:
        state = run(searchable_state, FocusSearch(True), EditSearch("export"))
        current = view(state)

        assert current.search == "export"
        assert current.search_focused is True
        assert current.total_issues == 3
        assert [issue.key for issue in current.issues] == ["PROJ-2"]


class TestView:
    """Tests for the derived view model."""

    def test_view_of_composing_state(self, composing_state) -> None:
        state = run(composing_state, EditDuration("90"), EditComment("review"))
        current = view(state)

        assert current.mode is Mode.COMPOSING
        assert current.draft.issue_key == "PROJ-1"
        assert current.draft.summary == "Issue number 1"
        assert current.draft.duration_text == "90"
        assert current.draft.duration_label == "1h 30m"
        assert current.draft.comment == "review"
        assert current.draft.submitting is False

    def test_zero_duration_shows_empty_text(self, composing_state) -> None:
        assert view(composing_state).draft.duration_text == ""

    def test_view_marks_submitting(self, confirming_state) -> None:
        assert view(confirming_state).draft.submitting is True

    def test_view_without_draft(self, browsing_state) -> None:
        current = view(browsing_state)
        assert current.draft is None
        assert current.highlighted_issue.key == "PROJ-1"

    def test_timer_label(self, browsing_state) -> None:
        state = transition(browsing_state, ToggleTimer(BASE_TIME)).state
        current = view(state, now=BASE_TIME + timedelta(minutes=75))
        assert current.timer_label == "PROJ-1 running for 1h 15m"
