"""Modal dialog for searching the loaded entries."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label

if TYPE_CHECKING:
    from textual.app import ComposeResult
    from textual.binding import BindingType


class SearchDialog(ModalScreen[str | None]):
    """Ask for a case-insensitive search term."""

    DEFAULT_CSS = """
    SearchDialog {
        align: center middle;
    }

    SearchDialog > Vertical {
        width: 70;
        height: auto;
        background: $surface;
        border: tall $accent;
        padding: 1 2;
    }

    SearchDialog > Vertical > .title {
        margin-bottom: 1;
        text-style: bold;
    }

    SearchDialog > Vertical > Input {
        width: 100%;
    }

    SearchDialog > Vertical > .hint {
        color: $text-muted;
        margin-top: 1;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, last_term: str = "") -> None:
        super().__init__()
        self._last_term = last_term

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label("Search loaded logs", classes="title")
            yield Input(value=self._last_term, placeholder="text in message or payload...", id="search-input")
            yield Label("Enter to search, Escape to cancel", classes="hint")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value)

    def action_cancel(self) -> None:
        self.dismiss(None)
