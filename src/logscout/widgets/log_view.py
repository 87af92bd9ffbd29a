"""Log entry list rendered with the Line API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from rich.segment import Segment
from rich.style import Style
from textual.binding import Binding, BindingType
from textual.geometry import Size
from textual.message import Message
from textual.scroll_view import ScrollView
from textual.strip import Strip

from logscout.models import Severity

if TYPE_CHECKING:
    from logscout.models import LogEntry

_SEVERITY_CLASSES: dict[str, str] = {
    Severity.EMERGENCY: "logview--severity-critical",
    Severity.ALERT: "logview--severity-critical",
    Severity.CRITICAL: "logview--severity-critical",
    Severity.ERROR: "logview--severity-error",
    Severity.WARNING: "logview--severity-warning",
    Severity.DEBUG: "logview--severity-debug",
}


class LogView(ScrollView, can_focus=True):
    """Newest-first list of log entries, one row each.

    The view does not own the cursor: key presses are posted as ``CursorMove``
    messages and the app sets the cursor back from the pagination controller.
    """

    DEFAULT_CSS = """
    LogView {
        background: $surface;
        height: 1fr;
    }

    LogView > .logview--highlight {
        background: $primary-darken-2;
        color: $text;
    }

    LogView > .logview--timestamp {
        color: $text-muted;
    }

    LogView > .logview--match {
        color: $warning;
        text-style: bold;
    }

    LogView > .logview--severity-critical {
        background: #5c1015;
        text-style: bold;
    }

    LogView > .logview--severity-error {
        background: #3d1518;
    }

    LogView > .logview--severity-warning {
        background: #3d2e0a;
    }

    LogView > .logview--severity-debug {
        color: $text-disabled;
    }
    """

    COMPONENT_CLASSES: ClassVar[set[str]] = {
        "logview--highlight",
        "logview--timestamp",
        "logview--match",
        "logview--severity-critical",
        "logview--severity-error",
        "logview--severity-warning",
        "logview--severity-debug",
    }

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("up", "move(-1)", "Up", show=False),
        Binding("down", "move(1)", "Down", show=False),
        Binding("k", "move(-1)", "Up", show=False),
        Binding("j", "move(1)", "Down", show=False),
        Binding("pageup", "page(-1)", "Page Up", show=False),
        Binding("pagedown", "page(1)", "Page Down", show=False),
        Binding("home", "jump(-1)", "Top", show=False),
        Binding("end", "jump(1)", "Bottom", show=False),
        Binding("g", "jump(-1)", "Top", show=False),
        Binding("G", "jump(1)", "Bottom", show=False),
    ]

    class CursorMove(Message):
        """The user asked to move the cursor by ``rows`` (negative is toward newer)."""

        def __init__(self, rows: int) -> None:
            super().__init__()
            self.rows = rows

    def __init__(self, **kwargs: Any) -> None:  # noqa: ANN401
        super().__init__(**kwargs)
        self._entries: list[LogEntry] = []
        self._cursor = 0
        self._matches: set[int] = set()
        self._max_width = 0

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    def set_entries(self, entries: list[LogEntry], cursor: int, matches: list[int] | None = None) -> None:
        """Show a new window of entries with the cursor at the given row."""
        self._entries = entries
        self._matches = set(matches or ())
        self._max_width = max((len(self._format(entry)) for entry in entries), default=0)
        self.virtual_size = Size(self._max_width, len(entries))
        self.set_cursor(cursor)

    def set_cursor(self, cursor: int) -> None:
        self._cursor = max(0, min(cursor, len(self._entries) - 1)) if self._entries else 0
        self._scroll_cursor_into_view()
        self.refresh()

    def _scroll_cursor_into_view(self) -> None:
        region_height = self.scrollable_content_region.height
        if region_height <= 0 or not self._entries:
            return
        scroll_y = self.scroll_offset.y
        if self._cursor < scroll_y:
            self.scroll_to(y=self._cursor, animate=False)
        elif self._cursor >= scroll_y + region_height:
            self.scroll_to(y=self._cursor - region_height + 1, animate=False)

    @staticmethod
    def _format(entry: LogEntry) -> str:
        stamp = entry.timestamp.strftime("%Y-%m-%d %H:%M:%S")
        message = entry.message or entry.payload_text
        return f"{stamp} {entry.severity[:4]:<4} {message.splitlines()[0] if message else ''}"

    def render_line(self, y: int) -> Strip:
        scroll_x, scroll_y = self.scroll_offset
        row = scroll_y + y
        width = self.scrollable_content_region.width
        if width <= 0:
            return Strip.blank(self.size.width, self.rich_style)
        if row < 0 or row >= len(self._entries):
            return Strip.blank(width, self.rich_style)

        entry = self._entries[row]
        if row == self._cursor:
            bg_style = self.get_component_rich_style("logview--highlight")
        elif severity_class := _SEVERITY_CLASSES.get(entry.severity):
            bg_style = self.get_component_rich_style(severity_class)
        else:
            bg_style = Style()

        text = self._format(entry)
        stamp_len = len("YYYY-MM-DD HH:MM:SS ")
        text_style = self.get_component_rich_style("logview--match") if row in self._matches else Style()
        segments = [
            Segment(text[:stamp_len], self.get_component_rich_style("logview--timestamp") + bg_style),
            Segment(text[stamp_len:], text_style + bg_style),
        ]
        strip = Strip(segments).crop(scroll_x, scroll_x + width)
        return strip.extend_cell_length(width, bg_style)

    # --- Actions ---

    def action_move(self, rows: int) -> None:
        self.post_message(self.CursorMove(rows))

    def action_page(self, direction: int) -> None:
        page_size = max(1, self.scrollable_content_region.height - 1)
        self.post_message(self.CursorMove(direction * page_size))

    def action_jump(self, direction: int) -> None:
        # Moving by the whole window clamps to the edge without crossing it.
        self.post_message(self.CursorMove(direction * max(1, len(self._entries))))
