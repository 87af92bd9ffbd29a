"""Help screen showing all keyboard shortcuts."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, override

from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Static

if TYPE_CHECKING:
    from textual.app import ComposeResult
    from textual.binding import BindingType

HELP_TEXT = """\
[bold]Navigation[/bold]
  Up/Down, j/k                          Move between log entries
  PgUp/PgDn                             Page up/down
  Home/End, g/G                         Jump to newest/oldest loaded entry

  Moving past the oldest entry loads older logs.
  Moving past the newest entry loads newer logs.

[bold]Query[/bold]
  f                                     Edit the filter and run it
  r                                     Re-run the query, skipping the cache
  t                                     Time range
  l                                     Raise the minimum severity (wraps to all)
  L                                     Select severity levels
  a                                     Toggle auto-load all (page until exhausted)
  p                                     Select project

[bold]Saved queries[/bold]
  H                                     Query history
  b                                     Query library (d deletes)
  s                                     Save the current filter to the library

[bold]Search[/bold]
  /                                     Search loaded entries
  n                                     Next match
  N                                     Previous match

[bold]Entries[/bold]
  o, Enter                              Open the selected entry in $EDITOR
  O                                     Open all loaded entries in $EDITOR

[bold]General[/bold]
  h                                     Show this help
  q                                     Quit
"""


class HelpScreen(ModalScreen[None]):
    """Modal help screen with keyboard shortcuts."""

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }

    HelpScreen > VerticalScroll {
        width: 60%;
        height: 90%;
        max-height: 35;
        background: $surface;
        border: tall $accent;
        padding: 1 2;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        ("escape", "dismiss_help", "Close"),
        ("h", "dismiss_help", "Close"),
        ("q", "dismiss_help", "Close"),
    ]

    @override
    def compose(self) -> ComposeResult:
        with VerticalScroll():
            yield Static(HELP_TEXT, markup=True)

    def action_dismiss_help(self) -> None:
        self.dismiss(None)
