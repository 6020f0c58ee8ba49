"""Translation of raw key presses into session events.

Keys are Textual key names ("up", "enter", "ctrl+q", "j", ...). The
mapping depends on the mode shown in the current view; composing needs
the current field text so typed characters become whole-field edits, and
browsing sends typing to the search box while it has focus.
"""

from __future__ import annotations

from datetime import datetime

from jiratrack.session import AdjustDuration
from jiratrack.session import BeginLogging
from jiratrack.session import Cancel
from jiratrack.session import Confirm
from jiratrack.session import CopyIssue
from jiratrack.session import DraftField
from jiratrack.session import EditComment
from jiratrack.session import EditDuration
from jiratrack.session import EditSearch
from jiratrack.session import FocusSearch
from jiratrack.session import Mode
from jiratrack.session import MoveSelection
from jiratrack.session import Quit
from jiratrack.session import Refresh
from jiratrack.session import SelectEdge
from jiratrack.session import SessionEvent
from jiratrack.session import SessionView
from jiratrack.session import SwitchField
from jiratrack.session import ToggleTimer

PAGE_SIZE = 10
DURATION_STEP = 15

QUIT_KEYS = frozenset({"ctrl+q"})

HINTS: dict[Mode, list[tuple[str, str]]] = {
    Mode.LOADING: [("q", "Quit")],
    Mode.BROWSING: [
        ("↑/↓", "Select"),
        ("enter", "Log time"),
        ("t", "Timer"),
        ("y", "Copy title"),
        ("/", "Search"),
        ("r", "Refresh"),
        ("q", "Quit"),
    ],
    Mode.COMPOSING: [
        ("tab", "Switch field"),
        ("+/-", f"±{DURATION_STEP}m"),
        ("enter", "Submit"),
        ("esc", "Cancel"),
        ("ctrl+q", "Quit"),
    ],
    Mode.CONFIRMING: [("q", "Quit")],
}

SEARCH_HINTS = [
    ("type", "Filter"),
    ("↑/↓", "Select"),
    ("enter", "Log time"),
    ("esc", "Done"),
    ("ctrl+q", "Quit"),
]


def hints_for(mode: Mode, searching: bool = False) -> list[tuple[str, str]]:
    """Key hints shown in the footer for a mode."""
    if searching and mode is Mode.BROWSING:
        return SEARCH_HINTS
    return HINTS[mode]


def key_to_event(
    view: SessionView,
    key: str,
    character: str | None = None,
    now: datetime | None = None,
) -> SessionEvent | None:
    """Map a key press to a session event, or None when the key is unbound.

    Args:
        view: Current view model
        key: Textual key name
        character: Printable character for the key, if any
        now: Timestamp for events that record one (defaults to now)
    """
    if key in QUIT_KEYS:
        return Quit()

    if view.mode is Mode.BROWSING:
        if view.search_focused:
            return _search_key(view, key, character, now)
        return _browsing_key(view, key, character, now)
    if view.mode is Mode.COMPOSING:
        return _composing_key(view, key, character)
    if key == "q":
        return Quit()
    return None


def _browsing_key(
    view: SessionView,
    key: str,
    character: str | None,
    now: datetime | None,
) -> SessionEvent | None:
    if key in ("up", "k"):
        return MoveSelection(-1)
    if key in ("down", "j"):
        return MoveSelection(1)
    if key == "pageup":
        return MoveSelection(-PAGE_SIZE)
    if key == "pagedown":
        return MoveSelection(PAGE_SIZE)
    if key == "home":
        return SelectEdge(last=False)
    if key == "end":
        return SelectEdge(last=True)
    if key in ("enter", "l"):
        return BeginLogging(now) if now else BeginLogging()
    if key == "t":
        return ToggleTimer(now) if now else ToggleTimer()
    if key == "r":
        return Refresh()
    if key == "y":
        return CopyIssue()
    if character == "/":
        return FocusSearch(True)
    if key == "escape" and view.search:
        return EditSearch("")
    if key in ("q", "escape"):
        return Quit()
    return None


def _search_key(
    view: SessionView,
    key: str,
    character: str | None,
    now: datetime | None,
) -> SessionEvent | None:
    if key == "escape":
        return FocusSearch(False)
    if key == "enter":
        return BeginLogging(now) if now else BeginLogging()
    if key in ("up", "down", "pageup", "pagedown"):
        step = PAGE_SIZE if key.startswith("page") else 1
        return MoveSelection(-step if key in ("up", "pageup") else step)
    if key == "backspace":
        return EditSearch(view.search[:-1])
    if character and character.isprintable():
        return EditSearch(view.search + character)
    return None


def _composing_key(view: SessionView, key: str, character: str | None) -> SessionEvent | None:
    draft = view.draft
    if draft is None:
        return None

    if key == "escape":
        return Cancel()
    if key == "enter":
        return Confirm()
    if key in ("tab", "shift+tab"):
        return SwitchField()

    if draft.focus is DraftField.DURATION:
        if key == "backspace":
            return EditDuration(draft.duration_text[:-1])
        if character in ("+", "="):
            return AdjustDuration(DURATION_STEP)
        if character in ("-", "_"):
            return AdjustDuration(-DURATION_STEP)
        if character and character.isprintable():
            return EditDuration(draft.duration_text + character)
        return None

    if key == "backspace":
        return EditComment(draft.comment[:-1])
    if character and character.isprintable():
        return EditComment(draft.comment + character)
    return None
