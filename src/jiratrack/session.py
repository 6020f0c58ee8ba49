"""Interactive session state machine.

The whole session is one immutable SessionState value. transition() maps
(state, event) to the next state plus an optional command describing I/O
for the driver to perform; results of that I/O come back later as new
events. Nothing in this module touches the network or the terminal.

Modes and the events each one accepts:

    LOADING     IssuesFetched, IssuesFetchFailed
    BROWSING    MoveSelection, SelectEdge, BeginLogging, Refresh,
                ToggleTimer, CopyIssue, FocusSearch, EditSearch
    COMPOSING   EditDuration, AdjustDuration, EditComment, SwitchField,
                Confirm, Cancel
    CONFIRMING  WorklogSubmitted, WorklogSubmitFailed

Quit is accepted everywhere. Any other combination leaves the state
unchanged.
"""

from __future__ import annotations

import typing as t
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace
from datetime import datetime
from enum import Enum

from jiratrack.exceptions import FetchError
from jiratrack.exceptions import SubmitError
from jiratrack.models import Issue
from jiratrack.models import WorklogDraft
from jiratrack.models import format_minutes
from jiratrack.models import parse_minutes
from jiratrack.search import MAX_SEARCH_LENGTH
from jiratrack.search import filter_issues

MAX_COMMENT_LENGTH = 2000


class Mode(str, Enum):
    """Phase of the session governing which events are legal."""

    LOADING = "loading"
    BROWSING = "browsing"
    COMPOSING = "composing"
    CONFIRMING = "confirming"


class DraftField(str, Enum):
    """Draft field receiving typed input while composing."""

    DURATION = "duration"
    COMMENT = "comment"


def _now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True, slots=True)
class ActiveTimer:
    """Stopwatch running against one issue."""

    issue_key: str
    started_at: datetime

    def elapsed_minutes(self, now: datetime) -> int:
        seconds = (now - self.started_at).total_seconds()
        return max(0, int(seconds // 60))


@dataclass(frozen=True, slots=True)
class SessionState:
    """Everything the session knows.

    Invariants kept by transition():
        - visible is issues filtered and ranked by search
        - highlighted is None iff visible is empty, else an index into it
        - draft is not None iff mode is COMPOSING or CONFIRMING
        - draft.duration > 0 whenever mode is CONFIRMING
    """

    mode: Mode = Mode.LOADING
    issues: tuple[Issue, ...] = ()
    visible: tuple[Issue, ...] = ()
    highlighted: int | None = None
    search: str = ""
    search_focused: bool = False
    draft: WorklogDraft | None = None
    focus: DraftField = DraftField.DURATION
    error: str | None = None
    notice: str | None = None
    timer: ActiveTimer | None = None

    @property
    def highlighted_issue(self) -> Issue | None:
        if self.highlighted is None:
            return None
        return self.visible[self.highlighted]

    def issue_for(self, key: str) -> Issue | None:
        return next((issue for issue in self.issues if issue.key == key), None)


# Events produced by the key map


@dataclass(frozen=True, slots=True)
class MoveSelection:
    delta: int


@dataclass(frozen=True, slots=True)
class SelectEdge:
    last: bool


@dataclass(frozen=True, slots=True)
class BeginLogging:
    at: datetime = field(default_factory=_now)


@dataclass(frozen=True, slots=True)
class Refresh:
    pass


@dataclass(frozen=True, slots=True)
class ToggleTimer:
    at: datetime = field(default_factory=_now)


@dataclass(frozen=True, slots=True)
class CopyIssue:
    pass


@dataclass(frozen=True, slots=True)
class FocusSearch:
    active: bool


@dataclass(frozen=True, slots=True)
class EditSearch:
    text: str


@dataclass(frozen=True, slots=True)
class EditDuration:
    text: str


@dataclass(frozen=True, slots=True)
class AdjustDuration:
    delta: int


@dataclass(frozen=True, slots=True)
class EditComment:
    text: str


@dataclass(frozen=True, slots=True)
class SwitchField:
    pass


@dataclass(frozen=True, slots=True)
class Confirm:
    pass


@dataclass(frozen=True, slots=True)
class Cancel:
    pass


@dataclass(frozen=True, slots=True)
class Quit:
    pass


# Events produced by completed Jira calls


@dataclass(frozen=True, slots=True)
class IssuesFetched:
    issues: tuple[Issue, ...]


@dataclass(frozen=True, slots=True)
class IssuesFetchFailed:
    error: FetchError


@dataclass(frozen=True, slots=True)
class WorklogSubmitted:
    worklog_id: str


@dataclass(frozen=True, slots=True)
class WorklogSubmitFailed:
    error: SubmitError


UserEvent = t.Union[
    MoveSelection,
    SelectEdge,
    BeginLogging,
    Refresh,
    ToggleTimer,
    CopyIssue,
    FocusSearch,
    EditSearch,
    EditDuration,
    AdjustDuration,
    EditComment,
    SwitchField,
    Confirm,
    Cancel,
    Quit,
]
ResultEvent = t.Union[IssuesFetched, IssuesFetchFailed, WorklogSubmitted, WorklogSubmitFailed]
SessionEvent = t.Union[UserEvent, ResultEvent]

RESULT_EVENTS = (IssuesFetched, IssuesFetchFailed, WorklogSubmitted, WorklogSubmitFailed)


# Commands for the driver


@dataclass(frozen=True, slots=True)
class FetchIssues:
    pass


@dataclass(frozen=True, slots=True)
class SubmitWorklog:
    draft: WorklogDraft


@dataclass(frozen=True, slots=True)
class CopyToClipboard:
    text: str


@dataclass(frozen=True, slots=True)
class QuitApp:
    pass


Command = t.Union[FetchIssues, SubmitWorklog, CopyToClipboard, QuitApp]


class Transition(t.NamedTuple):
    """Result of one step: the next state and an optional command."""

    state: SessionState
    command: Command | None = None


def initial_state() -> SessionState:
    return SessionState()


def start() -> Transition:
    """Initial state together with the command that loads the issues."""
    return Transition(initial_state(), FetchIssues())


def transition(state: SessionState, event: SessionEvent) -> Transition:
    """Compute the next state for an event.

    Pure and synchronous. Events the current mode does not accept return
    the state unchanged with no command.
    """
    if isinstance(event, Quit):
        return Transition(state, QuitApp())

    if not isinstance(event, RESULT_EVENTS) and state.notice is not None:
        state = replace(state, notice=None)

    handler = _HANDLERS[state.mode]
    return handler(state, event)


def _loading(state: SessionState, event: SessionEvent) -> Transition:
    if isinstance(event, IssuesFetched):
        issues = tuple(event.issues)
        visible = filter_issues(issues, state.search)
        return Transition(
            replace(
                state,
                mode=Mode.BROWSING,
                issues=issues,
                visible=visible,
                highlighted=0 if visible else None,
                error=None,
            )
        )

    if isinstance(event, IssuesFetchFailed):
        return Transition(
            replace(
                state,
                mode=Mode.BROWSING,
                issues=(),
                visible=(),
                highlighted=None,
                error=event.error.user_message(),
            )
        )

    return Transition(state)


def _clamp(index: int, size: int) -> int:
    return max(0, min(index, size - 1))


def _browsing(state: SessionState, event: SessionEvent) -> Transition:
    if isinstance(event, MoveSelection):
        if state.highlighted is None:
            return Transition(state)
        index = _clamp(state.highlighted + event.delta, len(state.visible))
        return Transition(replace(state, highlighted=index))

    if isinstance(event, SelectEdge):
        if state.highlighted is None:
            return Transition(state)
        index = len(state.visible) - 1 if event.last else 0
        return Transition(replace(state, highlighted=index))

    if isinstance(event, FocusSearch):
        return Transition(replace(state, search_focused=event.active))

    if isinstance(event, EditSearch):
        text = event.text
        if len(text) > MAX_SEARCH_LENGTH or not text.isprintable():
            return Transition(state)
        visible = filter_issues(state.issues, text)
        return Transition(
            replace(
                state,
                search=text,
                visible=visible,
                highlighted=0 if visible else None,
            )
        )

    if isinstance(event, Refresh):
        return Transition(replace(state, mode=Mode.LOADING, error=None), FetchIssues())

    issue = state.highlighted_issue
    if issue is None:
        return Transition(state)

    if isinstance(event, BeginLogging):
        timer = state.timer
        if timer is not None and timer.issue_key == issue.key:
            draft = WorklogDraft(
                issue_key=issue.key,
                started_at=timer.started_at,
                duration=timer.elapsed_minutes(event.at),
                from_timer=True,
            )
        else:
            draft = WorklogDraft(issue_key=issue.key, started_at=event.at)
        return Transition(
            replace(
                state,
                mode=Mode.COMPOSING,
                draft=draft,
                focus=DraftField.DURATION,
                search_focused=False,
                error=None,
            )
        )

    if isinstance(event, ToggleTimer):
        if state.timer is not None and state.timer.issue_key == issue.key:
            return Transition(
                replace(state, timer=None, notice=f"Timer stopped for {issue.key}")
            )
        return Transition(
            replace(
                state,
                timer=ActiveTimer(issue.key, event.at),
                notice=f"Timer started on {issue.key}",
            )
        )

    if isinstance(event, CopyIssue):
        return Transition(
            replace(state, notice=f"Copied {issue.key} to clipboard"),
            CopyToClipboard(issue.title_line()),
        )

    return Transition(state)


def _composing(state: SessionState, event: SessionEvent) -> Transition:
    draft = state.draft
    if draft is None:
        return Transition(state)

    if isinstance(event, EditDuration):
        minutes = parse_minutes(event.text)
        if minutes is None:
            return Transition(state)
        return Transition(replace(state, draft=replace(draft, duration=minutes)))

    if isinstance(event, AdjustDuration):
        minutes = draft.duration + event.delta
        if minutes < 0:
            return Transition(state)
        return Transition(replace(state, draft=replace(draft, duration=minutes)))

    if isinstance(event, EditComment):
        text = event.text
        if len(text) > MAX_COMMENT_LENGTH or not text.isprintable():
            return Transition(state)
        return Transition(replace(state, draft=replace(draft, comment=text)))

    if isinstance(event, SwitchField):
        focus = DraftField.COMMENT if state.focus is DraftField.DURATION else DraftField.DURATION
        return Transition(replace(state, focus=focus))

    if isinstance(event, Confirm):
        if draft.duration <= 0:
            return Transition(state)
        return Transition(
            replace(state, mode=Mode.CONFIRMING, error=None),
            SubmitWorklog(draft),
        )

    if isinstance(event, Cancel):
        return Transition(
            replace(
                state,
                mode=Mode.BROWSING,
                draft=None,
                focus=DraftField.DURATION,
                error=None,
            )
        )

    return Transition(state)


def _confirming(state: SessionState, event: SessionEvent) -> Transition:
    draft = state.draft
    if draft is None:
        return Transition(state)

    if isinstance(event, WorklogSubmitted):
        timer = state.timer
        if (
            draft.from_timer
            and timer is not None
            and timer.issue_key == draft.issue_key
            and timer.started_at == draft.started_at
        ):
            timer = None
        return Transition(
            replace(
                state,
                mode=Mode.BROWSING,
                draft=None,
                focus=DraftField.DURATION,
                error=None,
                timer=timer,
                notice=f"Logged {format_minutes(draft.duration)} on {draft.issue_key}",
            )
        )

    if isinstance(event, WorklogSubmitFailed):
        return Transition(
            replace(state, mode=Mode.COMPOSING, error=event.error.user_message())
        )

    return Transition(state)


_HANDLERS: dict[Mode, t.Callable[[SessionState, SessionEvent], Transition]] = {
    Mode.LOADING: _loading,
    Mode.BROWSING: _browsing,
    Mode.COMPOSING: _composing,
    Mode.CONFIRMING: _confirming,
}


# View model


@dataclass(frozen=True, slots=True)
class DraftView:
    issue_key: str
    summary: str
    duration_text: str
    duration_label: str
    comment: str
    focus: DraftField
    started_label: str
    submitting: bool


@dataclass(frozen=True, slots=True)
class SessionView:
    """Read-only projection of SessionState handed to the renderer.

    issues holds the rows to show, already filtered by the search text;
    total_issues counts everything fetched.
    """

    mode: Mode
    issues: tuple[Issue, ...]
    total_issues: int
    search: str
    search_focused: bool
    highlighted: int | None
    draft: DraftView | None
    error: str | None
    notice: str | None
    timer_label: str | None

    @property
    def highlighted_issue(self) -> Issue | None:
        if self.highlighted is None:
            return None
        return self.issues[self.highlighted]


def view(state: SessionState, now: datetime | None = None) -> SessionView:
    """Derive the view model for the renderer."""
    now = now or _now()

    draft_view = None
    if state.draft is not None:
        draft = state.draft
        issue = state.issue_for(draft.issue_key)
        draft_view = DraftView(
            issue_key=draft.issue_key,
            summary=issue.summary if issue is not None else "",
            duration_text=str(draft.duration) if draft.duration else "",
            duration_label=format_minutes(draft.duration),
            comment=draft.comment,
            focus=state.focus,
            started_label=f"{draft.started_at:%Y-%m-%d %H:%M}",
            submitting=state.mode is Mode.CONFIRMING,
        )

    timer_label = None
    if state.timer is not None:
        elapsed = format_minutes(state.timer.elapsed_minutes(now))
        timer_label = f"{state.timer.issue_key} running for {elapsed}"

    return SessionView(
        mode=state.mode,
        issues=state.visible,
        total_issues=len(state.issues),
        search=state.search,
        search_focused=state.search_focused,
        highlighted=state.highlighted,
        draft=draft_view,
        error=state.error,
        notice=state.notice,
        timer_label=timer_label,
    )
