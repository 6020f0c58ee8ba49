"""Loading spinner widget with status text.

Provides StatusSpinner, shown while a Jira call is outstanding.
"""

from __future__ import annotations

from rich.console import RenderableType
from textual.reactive import reactive
from textual.widgets import Static


class StatusSpinner(Static):
    """Braille spinner alongside a status message.

    Example:
        spinner = StatusSpinner(id="spinner")
        spinner.start("Fetching issues...")
        spinner.stop()
    """

    FRAMES = ["⣾", "⣽", "⣻", "⢿", "⡿", "⣟", "⣯", "⣷"]

    status: reactive[str] = reactive("")
    active: reactive[bool] = reactive(False)

    DEFAULT_CSS = """
    StatusSpinner {
        width: auto;
        height: 1;
        display: none;
    }

    StatusSpinner.active {
        display: block;
    }
    """

    def __init__(self, status: str = "", *, id: str | None = None) -> None:  # noqa: A002
        super().__init__(id=id)
        self.status = status
        self._frame_index = 0
        self._update_timer = None

    def on_unmount(self) -> None:
        self.stop()

    def _advance_frame(self) -> None:
        self._frame_index = (self._frame_index + 1) % len(self.FRAMES)
        self.refresh()

    def render(self) -> RenderableType:
        frame = self.FRAMES[self._frame_index]
        status_text = f" {self.status}" if self.status else ""
        return f"[b]{frame}[/b]{status_text}"

    def start(self, status: str = "") -> None:
        """Show the spinner, optionally with a new status."""
        if status:
            self.status = status
        if self._update_timer is None:
            self._update_timer = self.set_interval(0.1, self._advance_frame)
        self.active = True
        self.add_class("active")

    def stop(self) -> None:
        """Hide the spinner."""
        if self._update_timer is not None:
            self._update_timer.stop()
            self._update_timer = None
        self.active = False
        self.remove_class("active")
