"""Widgets that paint the session view model.

Each widget exposes show(view) and never keeps state of its own beyond
what it needs to avoid redundant redraws. None of them take focus: all
keys are routed through the app's key map.
"""

from __future__ import annotations

from rich.markup import escape
from textual.widgets import DataTable
from textual.widgets import Static

from jiratrack.keymap import hints_for
from jiratrack.models import Issue
from jiratrack.session import DraftField
from jiratrack.session import Mode
from jiratrack.session import SessionView

COLUMNS = ("Key", "Status", "Time Spent", "Assignee", "Summary")


class TopBar(Static):
    """Title line with version and the Jira site in use."""

    DEFAULT_CSS = """
    TopBar {
        height: 1;
        text-align: center;
        text-style: bold;
    }
    """

    def __init__(self, version: str = "unknown", site: str = "", **kwargs) -> None:
        super().__init__(**kwargs)
        self.version = version
        self.site = site

    def render(self) -> str:
        title = f"jiratrack v{self.version}"
        return f"{title}  ·  {escape(self.site)}" if self.site else title


class IssueTable(DataTable[str]):
    """Table of assigned issues with the highlighted row as cursor."""

    can_focus = False

    DEFAULT_CSS = """
    IssueTable {
        height: 1fr;
        border: round $panel;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(cursor_type="row", zebra_stripes=True, **kwargs)
        self._issues: tuple[Issue, ...] | None = None

    def on_mount(self) -> None:
        self.add_columns(*COLUMNS)
        self.border_title = "Assigned issues"

    def show(self, view: SessionView) -> None:
        if view.issues is not self._issues:
            self._issues = view.issues
            self.clear()
            for issue in view.issues:
                self.add_row(
                    issue.key,
                    issue.status,
                    issue.time_spent,
                    issue.assignee,
                    issue.summary,
                    key=issue.key,
                )
            if len(view.issues) == view.total_issues:
                self.border_subtitle = f"{len(view.issues)} issues"
            else:
                self.border_subtitle = f"{len(view.issues)} of {view.total_issues} issues"

        self.show_cursor = view.highlighted is not None
        if view.highlighted is not None and self.cursor_row != view.highlighted:
            self.move_cursor(row=view.highlighted)


class SearchBox(Static):
    """Fuzzy search line above the table, hidden until there is a query."""

    DEFAULT_CSS = """
    SearchBox {
        height: 1;
        padding: 0 1;
        display: none;
    }

    SearchBox.visible {
        display: block;
    }

    SearchBox.active {
        background: $boost;
    }
    """

    def show(self, view: SessionView) -> None:
        visible = view.mode is Mode.BROWSING and (view.search_focused or bool(view.search))
        self.set_class(visible, "visible")
        self.set_class(view.search_focused, "active")
        cursor = "▏" if view.search_focused else ""
        self.update(f"[b]/[/b] {escape(view.search)}{cursor}")


class DraftPanel(Static):
    """Worklog draft editor, visible while composing or confirming."""

    DEFAULT_CSS = """
    DraftPanel {
        height: auto;
        border: round $accent;
        padding: 0 1;
        display: none;
    }

    DraftPanel.visible {
        display: block;
    }

    DraftPanel.submitting {
        border: round $warning;
    }
    """

    def show(self, view: SessionView) -> None:
        draft = view.draft
        self.set_class(draft is not None, "visible")
        if draft is None:
            return

        self.set_class(draft.submitting, "submitting")
        self.border_title = f"Log time · {draft.issue_key}"

        def field_line(name: str, value: str, focus: DraftField) -> str:
            cursor = "▏" if draft.focus is focus and not draft.submitting else ""
            marker = "»" if draft.focus is focus else " "
            return f"{marker} [b]{name}[/b] {escape(value)}{cursor}"

        duration = draft.duration_text or "0"
        lines = [
            escape(draft.summary) if draft.summary else "",
            field_line("Minutes:", duration, DraftField.DURATION) + f"  ({draft.duration_label})",
            field_line("Comment:", draft.comment, DraftField.COMMENT),
            f"  [dim]Started {draft.started_label}[/dim]",
        ]
        if draft.submitting:
            lines.append("  [b]Submitting…[/b]")
        self.update("\n".join(line for line in lines if line))


class StatusLine(Static):
    """Error, notice and timer messages."""

    DEFAULT_CSS = """
    StatusLine {
        height: auto;
        padding: 0 1;
    }
    """

    def show(self, view: SessionView) -> None:
        parts = []
        if view.error:
            parts.append(f"[b red]✗ {escape(view.error)}[/]")
        if view.notice:
            parts.append(f"[green]✓ {escape(view.notice)}[/]")
        if view.timer_label:
            parts.append(f"[yellow]⏱ {escape(view.timer_label)}[/]")
        if view.mode is Mode.BROWSING and not view.issues and not view.error:
            if view.total_issues:
                parts.append(f'No issues match "{escape(view.search)}". Press esc to clear.')
            else:
                parts.append("No assigned issues. Press r to refresh.")
        self.update("\n".join(parts))


class KeyHints(Static):
    """Footer listing the keys valid in the current mode."""

    DEFAULT_CSS = """
    KeyHints {
        height: 1;
        background: $surface-darken-2;
        padding: 0 1;
    }
    """

    def show(self, view: SessionView) -> None:
        pairs = hints_for(view.mode, searching=view.search_focused)
        hints = "  ".join(f"[b]{escape(key)}[/b] {label}" for key, label in pairs)
        self.update(hints)
