"""Bottom status bar."""

from __future__ import annotations

from dataclasses import dataclass

from rich.text import Text
from textual.widget import Widget


@dataclass
class StatusInfo:
    """Everything the status bar shows."""

    project: str = ""
    time_range: str = "none"
    severity: str = "all"
    count: int = 0
    position: int = 0
    loading: str = "idle"
    auto_load_all: bool = False
    message: str = ""
    error: bool = False


class StatusBar(Widget):
    """Bottom status bar showing the query context, loading state and last message."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        background: $primary;
        color: $text;
        padding: 0 1;
    }
    """

    def __init__(self, id: str | None = None) -> None:  # noqa: A002
        super().__init__(id=id)
        self._info = StatusInfo()

    @property
    def info(self) -> StatusInfo:
        return self._info

    def update_info(self, info: StatusInfo) -> None:
        self._info = info
        self.refresh()

    def render(self) -> Text:
        info = self._info
        text = Text()
        text.append(info.project or "(gcloud default)", style="bold")
        text.append(f"  {info.time_range}  sev {info.severity}")
        if info.count:
            text.append(f"  {info.position + 1}/{info.count}")
        else:
            text.append("  0 logs")
        if info.loading != "idle":
            text.append(f"  Loading: {info.loading}", style="bold italic")
        if info.auto_load_all:
            text.append("  ALL", style="bold reverse")

        if info.message:
            used = len(text.plain)
            padding = max(2, self.size.width - used - len(info.message))
            text.append(" " * padding)
            text.append(info.message, style="bold red" if info.error else "")
        return text
