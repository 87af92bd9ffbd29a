"""Modal dialog for selecting explicit severity levels."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Label, SelectionList

from logscout.models import Severity, SeverityFilter, SeverityMode

if TYPE_CHECKING:
    from textual.app import ComposeResult
    from textual.binding import BindingType


class SeverityDialog(ModalScreen[SeverityFilter | None]):
    """Toggle individual severity levels. Nothing selected means all levels."""

    DEFAULT_CSS = """
    SeverityDialog {
        align: center middle;
    }

    SeverityDialog > Vertical {
        width: 50;
        height: auto;
        background: $surface;
        border: tall $accent;
        padding: 1 2;
    }

    SeverityDialog > Vertical > .title {
        margin-bottom: 1;
        text-style: bold;
    }

    SeverityDialog > Vertical > SelectionList {
        height: auto;
    }

    SeverityDialog > Vertical > .hint {
        color: $text-muted;
        margin-top: 1;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("escape", "cancel", "Cancel"),
        Binding("ctrl+s", "apply", "Apply"),
    ]

    def __init__(self, current: SeverityFilter) -> None:
        super().__init__()
        self._current = current

    def compose(self) -> ComposeResult:
        selected = set(self._current.levels) if self._current.mode == SeverityMode.LEVELS else set()
        with Vertical():
            yield Label("Severity levels", classes="title")
            yield SelectionList[Severity](
                *((level.value, level, level in selected) for level in Severity),
                id="severity-list",
            )
            yield Label("Space to toggle, Ctrl+S to apply, Escape to cancel", classes="hint")

    def action_apply(self) -> None:
        levels = self.query_one("#severity-list", SelectionList).selected
        ordered = [level for level in Severity if level in levels]
        self.dismiss(SeverityFilter.of(*ordered))

    def action_cancel(self) -> None:
        self.dismiss(None)
