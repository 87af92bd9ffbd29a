"""Pick an item from the query history, the query library or the project list."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

from rich.text import Text
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Label, OptionList
from textual.widgets.option_list import Option

if TYPE_CHECKING:
    from textual.app import ComposeResult
    from textual.binding import BindingType


class PickActionType(StrEnum):
    """Possible picker actions."""

    SELECT = "select"
    DELETE = "delete"


@dataclass
class PickAction:
    """Result from the picker: what was done to which row."""

    action: PickActionType
    index: int
    key: str


@dataclass
class PickItem:
    key: str
    label: str
    detail: str = ""
    current: bool = False


class QueryListDialog(ModalScreen[PickAction | None]):
    """Generic list picker; optionally lets the user delete rows."""

    DEFAULT_CSS = """
    QueryListDialog {
        align: center middle;
    }

    QueryListDialog > Vertical {
        width: 80%;
        height: 80%;
        max-height: 30;
        background: $surface;
        border: tall $accent;
        padding: 1 2;
    }

    QueryListDialog > Vertical > .title {
        margin-bottom: 1;
        text-style: bold;
    }

    QueryListDialog > Vertical > OptionList {
        height: 1fr;
    }

    QueryListDialog > Vertical > .hint {
        color: $text-muted;
        margin-top: 1;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("escape", "cancel", "Close"),
        Binding("q", "cancel", "Close"),
        Binding("d", "delete", "Delete"),
    ]

    def __init__(self, title: str, items: list[PickItem], *, empty: str = "(empty)", deletable: bool = False) -> None:
        super().__init__()
        self._title = title
        self._items = items
        self._empty = empty
        self._deletable = deletable

    def compose(self) -> ComposeResult:
        hint = "Enter: select  d: delete  Esc: close" if self._deletable else "Enter: select  Esc: close"
        with Vertical():
            yield Label(self._title, classes="title")
            yield OptionList(id="pick-list")
            yield Label(hint, classes="hint")

    def on_mount(self) -> None:
        ol = self.query_one("#pick-list", OptionList)
        if not self._items:
            ol.add_option(Option(self._empty, disabled=True))
            return
        for i, item in enumerate(self._items):
            display = Text()
            display.append(item.label.replace("\n", " "), style="bold green" if item.current else "")
            if item.detail:
                display.append(f"  {item.detail}", style="dim")
            ol.add_option(Option(display, id=str(i)))
        ol.highlighted = next((i for i, item in enumerate(self._items) if item.current), 0)

    def _highlighted(self) -> int | None:
        ol = self.query_one("#pick-list", OptionList)
        if ol.highlighted is None or not self._items:
            return None
        return ol.highlighted

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option.id is None:
            return
        index = int(event.option.id)
        self.dismiss(PickAction(PickActionType.SELECT, index, self._items[index].key))

    def action_delete(self) -> None:
        if not self._deletable:
            return
        index = self._highlighted()
        if index is not None:
            self.dismiss(PickAction(PickActionType.DELETE, index, self._items[index].key))

    def action_cancel(self) -> None:
        self.dismiss(None)
