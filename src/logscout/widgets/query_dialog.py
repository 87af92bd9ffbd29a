"""Modal editor for the filter expression."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Label, OptionList, TextArea
from textual.widgets.option_list import Option

from logscout.errors import ValidationError
from logscout.filters import sanitize_filter, validate_filter

if TYPE_CHECKING:
    from textual.app import ComposeResult
    from textual.binding import BindingType


class QueryDialog(ModalScreen[str | None]):
    """Edit a multi-line filter. Lines starting with -- or # are comments."""

    DEFAULT_CSS = """
    QueryDialog {
        align: center middle;
    }

    QueryDialog > Vertical {
        width: 80%;
        height: 70%;
        background: $surface;
        border: tall $accent;
        padding: 1 2;
    }

    QueryDialog > Vertical > .title {
        margin-bottom: 1;
        text-style: bold;
    }

    QueryDialog > Vertical > TextArea {
        height: 1fr;
    }

    QueryDialog > Vertical > OptionList {
        height: auto;
        max-height: 8;
        margin-top: 1;
    }

    QueryDialog > Vertical > .error {
        color: $error;
        height: auto;
    }

    QueryDialog > Vertical > .hint {
        color: $text-muted;
        margin-top: 1;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("escape", "cancel", "Cancel"),
        Binding("ctrl+s", "submit", "Run"),
    ]

    def __init__(self, current: str, suggestions: list[str] | None = None) -> None:
        super().__init__()
        self._current = current
        self._suggestions = suggestions or []

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label("Filter", classes="title")
            yield TextArea(self._current, id="query-input")
            if self._suggestions:
                yield OptionList(
                    *(Option(text.replace("\n", " "), id=str(i)) for i, text in enumerate(self._suggestions)),
                    id="query-suggestions",
                )
            yield Label("", id="query-error", classes="error")
            yield Label("Ctrl+S to run, Tab to pick from history, Escape to cancel", classes="hint")

    def on_mount(self) -> None:
        self.query_one("#query-input", TextArea).focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        text = self._suggestions[int(str(event.option.id))]
        area = self.query_one("#query-input", TextArea)
        area.text = text
        area.focus()

    def action_submit(self) -> None:
        text = self.query_one("#query-input", TextArea).text
        try:
            validate_filter(sanitize_filter(text))
        except ValidationError as exc:
            self.query_one("#query-error", Label).update(f"Invalid filter: {exc}")
            return
        self.dismiss(text)

    def action_cancel(self) -> None:
        self.dismiss(None)
