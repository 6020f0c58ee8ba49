"""Main Textual application for jiratrack.

JiraTrackApp is the event loop around the session state machine: it turns
key presses into session events, runs transitions, executes the commands
they return, and feeds completed Jira calls back in as messages.
"""

from __future__ import annotations

from textual import events
from textual.app import App
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.message import Message

from jiratrack import __version__
from jiratrack import get_logger
from jiratrack.exceptions import FetchError
from jiratrack.exceptions import SubmitError
from jiratrack.jira.base import JiraBackend
from jiratrack.keymap import key_to_event
from jiratrack.session import Command
from jiratrack.session import CopyToClipboard
from jiratrack.session import FetchIssues
from jiratrack.session import IssuesFetched
from jiratrack.session import IssuesFetchFailed
from jiratrack.session import Mode
from jiratrack.session import Quit
from jiratrack.session import QuitApp
from jiratrack.session import SessionEvent
from jiratrack.session import SessionState
from jiratrack.session import SubmitWorklog
from jiratrack.session import Transition
from jiratrack.session import WorklogSubmitFailed
from jiratrack.session import WorklogSubmitted
from jiratrack.session import start
from jiratrack.session import transition
from jiratrack.session import view
from jiratrack.ui.spinner import StatusSpinner
from jiratrack.ui.widgets import DraftPanel
from jiratrack.ui.widgets import IssueTable
from jiratrack.ui.widgets import KeyHints
from jiratrack.ui.widgets import SearchBox
from jiratrack.ui.widgets import StatusLine
from jiratrack.ui.widgets import TopBar

logger = get_logger(__name__)

TIMER_REFRESH_SECONDS = 15.0


class SessionResult(Message):
    """A completed Jira call re-entering the loop as a session event."""

    def __init__(self, event: SessionEvent) -> None:
        super().__init__()
        self.event = event


class JiraTrackApp(App[int]):
    """Terminal client for browsing issues and logging time.

    Example:
        client = JiraClient.from_config(Config.load())
        JiraTrackApp(client).run()
    """

    TITLE = "jiratrack"

    BINDINGS = [
        Binding("ctrl+q", "request_quit", "Quit", priority=True, show=False),
    ]

    CSS = """
    Screen {
        background: $surface-darken-1;
    }

    #body {
        height: 1fr;
    }

    #spinner {
        padding: 0 1;
    }
    """

    def __init__(self, client: JiraBackend, site: str = "") -> None:
        super().__init__()
        self.client = client
        self.site = site
        self._start: Transition = start()
        self.session: SessionState = self._start.state

    def compose(self) -> ComposeResult:
        yield TopBar(version=__version__, site=self.site, id="topbar")
        with Vertical(id="body"):
            yield SearchBox(id="search")
            yield IssueTable(id="issues")
            yield DraftPanel(id="draft")
        yield StatusSpinner(id="spinner")
        yield StatusLine(id="status")
        yield KeyHints(id="hints")

    def on_mount(self) -> None:
        self.render_view()
        if self._start.command is not None:
            self.execute(self._start.command)
        self.set_interval(TIMER_REFRESH_SECONDS, self.render_view)

    def apply_event(self, event: SessionEvent) -> None:
        """Run one transition, redraw, and execute its command."""
        previous = self.session.mode
        result = transition(self.session, event)
        self.session = result.state
        logger.debug(
            "Session transition",
            session_event=type(event).__name__,
            from_mode=previous.value,
            to_mode=self.session.mode.value,
            command=type(result.command).__name__ if result.command else None,
        )
        self.render_view()
        if result.command is not None:
            self.execute(result.command)

    def render_view(self) -> None:
        """Paint the current view model."""
        current = view(self.session)
        self.query_one(SearchBox).show(current)
        self.query_one(IssueTable).show(current)
        self.query_one(DraftPanel).show(current)
        self.query_one(StatusLine).show(current)
        self.query_one(KeyHints).show(current)

        spinner = self.query_one(StatusSpinner)
        if current.mode is Mode.LOADING:
            spinner.start("Fetching issues…")
        elif current.mode is Mode.CONFIRMING:
            spinner.start("Submitting worklog…")
        else:
            spinner.stop()

    def execute(self, command: Command) -> None:
        """Carry out a command returned by the state machine."""
        if isinstance(command, FetchIssues):
            self.run_worker(self._fetch_issues(), group="fetch", exclusive=True)
        elif isinstance(command, SubmitWorklog):
            self.run_worker(self._submit_worklog(command), group="submit", exclusive=True)
        elif isinstance(command, CopyToClipboard):
            self.copy_to_clipboard(command.text)
        elif isinstance(command, QuitApp):
            logger.info("Quit requested")
            self.exit(return_code=0)

    async def _fetch_issues(self) -> None:
        try:
            issues = await self.client.fetch_assigned_issues()
        except FetchError as e:
            logger.warning("Issue fetch failed", kind=e.kind, error=e.message)
            self.post_message(SessionResult(IssuesFetchFailed(e)))
        except Exception as e:
            logger.exception("Unexpected error fetching issues")
            self.post_message(SessionResult(IssuesFetchFailed(FetchError("unexpected", str(e)))))
        else:
            self.post_message(SessionResult(IssuesFetched(tuple(issues))))

    async def _submit_worklog(self, command: SubmitWorklog) -> None:
        draft = command.draft
        try:
            worklog_id = await self.client.submit_worklog(
                draft.issue_key,
                draft.duration,
                draft.comment,
                draft.started_at,
            )
        except SubmitError as e:
            logger.warning("Worklog submission failed", kind=e.kind, error=e.message)
            self.post_message(SessionResult(WorklogSubmitFailed(e)))
        except Exception as e:
            logger.exception("Unexpected error submitting worklog")
            self.post_message(
                SessionResult(WorklogSubmitFailed(SubmitError("unexpected", str(e))))
            )
        else:
            self.post_message(SessionResult(WorklogSubmitted(worklog_id)))

    def on_session_result(self, message: SessionResult) -> None:
        self.apply_event(message.event)

    def on_key(self, event: events.Key) -> None:
        session_event = key_to_event(view(self.session), event.key, event.character)
        if session_event is None:
            return
        event.prevent_default()
        event.stop()
        self.apply_event(session_event)

    def action_request_quit(self) -> None:
        self.apply_event(Quit())
