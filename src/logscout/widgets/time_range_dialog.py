"""Modal dialog for choosing the query time range."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, ClassVar

from rich.text import Text
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label, OptionList
from textual.widgets.option_list import Option

from logscout.models import TIME_RANGE_PRESETS, TimeRange
from logscout.utils import parse_time

if TYPE_CHECKING:
    from textual.app import ComposeResult
    from textual.binding import BindingType

_NO_LIMIT = "none"


class TimeRangeDialog(ModalScreen[TimeRange | None]):
    """Pick a preset, no limit, or type an explicit start and end."""

    DEFAULT_CSS = """
    TimeRangeDialog {
        align: center middle;
    }

    TimeRangeDialog > Vertical {
        width: 70;
        height: auto;
        background: $surface;
        border: tall $accent;
        padding: 1 2;
    }

    TimeRangeDialog > Vertical > .title {
        margin-bottom: 1;
        text-style: bold;
    }

    TimeRangeDialog > Vertical > OptionList {
        height: auto;
        max-height: 8;
    }

    TimeRangeDialog > Vertical > Horizontal {
        height: auto;
        margin-top: 1;
    }

    TimeRangeDialog > Vertical > Horizontal > Input {
        width: 1fr;
    }

    TimeRangeDialog > Vertical > .error {
        color: $error;
        height: auto;
    }

    TimeRangeDialog > Vertical > .hint {
        color: $text-muted;
        margin-top: 1;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, current: TimeRange) -> None:
        super().__init__()
        self._current = current

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label("Time range", classes="title")
            yield OptionList(id="range-presets")
            with Horizontal():
                yield Input(placeholder="start: 2h, yesterday, 2024-01-15T10:00Z", id="range-start")
                yield Input(placeholder="end (default: now)", id="range-end")
            yield Label("", id="range-error", classes="error")
            yield Label("Enter on a preset or in the inputs, Escape to cancel", classes="hint")

    def on_mount(self) -> None:
        ol = self.query_one("#range-presets", OptionList)
        choices = [*TIME_RANGE_PRESETS, _NO_LIMIT]
        current = self._current.preset or (_NO_LIMIT if self._current.label == "none" else None)
        for name in choices:
            label = f"Last {name}" if name != _NO_LIMIT else "No time limit"
            display = Text(f"● {label}", style="bold green") if name == current else Text(f"  {label}")
            ol.add_option(Option(display, id=name))
        if current in choices:
            ol.highlighted = choices.index(current)
        if self._current.start is not None:
            self.query_one("#range-start", Input).value = self._current.start.isoformat()
        if self._current.end is not None:
            self.query_one("#range-end", Input).value = self._current.end.isoformat()
        ol.focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        preset = str(event.option.id)
        self.dismiss(TimeRange() if preset == _NO_LIMIT else TimeRange(preset=preset))

    def on_input_submitted(self, _event: Input.Submitted) -> None:
        start_text = self.query_one("#range-start", Input).value.strip()
        end_text = self.query_one("#range-end", Input).value.strip()
        if not start_text:
            self.query_one("#range-error", Label).update("Start time is required")
            return
        try:
            end = parse_time(end_text) if end_text else datetime.now(tz=UTC)
            start = parse_time(start_text, reference_date=end)
        except ValueError as exc:
            self.query_one("#range-error", Label).update(str(exc))
            return
        if start >= end:
            self.query_one("#range-error", Label).update("Start must be before end")
            return
        self.dismiss(TimeRange(start=start, end=end))

    def action_cancel(self) -> None:
        self.dismiss(None)
