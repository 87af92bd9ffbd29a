"""Textual application for logscout."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, ClassVar

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding, BindingType
from textual.widgets import Footer, Static

from logscout.config import save_state
from logscout.dispatcher import Ok
from logscout.session import ExplorerSession, ProjectsLoaded
from logscout.widgets.help_screen import HelpScreen
from logscout.widgets.log_view import LogView
from logscout.widgets.query_dialog import QueryDialog
from logscout.widgets.query_list_dialog import PickAction, PickActionType, PickItem, QueryListDialog
from logscout.widgets.search_dialog import SearchDialog
from logscout.widgets.severity_dialog import SeverityDialog
from logscout.widgets.status_bar import StatusBar, StatusInfo
from logscout.widgets.time_range_dialog import TimeRangeDialog

if TYPE_CHECKING:
    from logscout.models import AppConfig, SeverityFilter, TimeRange
    from logscout.session import Backend

logger = logging.getLogger(__name__)


class LogScoutApp(App[None]):  # noqa: PLR0904
    """Cloud log explorer TUI application."""

    ENABLE_COMMAND_PALETTE = False

    DEFAULT_CSS = """
    #query-bar {
        height: auto;
        max-height: 4;
        background: $panel;
        padding: 0 1;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("f", "edit_query", "Filter"),
        Binding("r", "refresh", "Refresh"),
        Binding("t", "time_range", "Time"),
        Binding("l", "cycle_severity", "Severity"),
        Binding("L", "select_severity", "Levels", show=False),
        Binding("a", "toggle_auto_load_all", "Load all", show=False),
        Binding("p", "select_project", "Project"),
        Binding("H", "show_history", "History"),
        Binding("b", "show_library", "Library"),
        Binding("s", "save_query", "Save", show=False),
        Binding("slash", "search", "Search", show=False),
        Binding("n", "next_match", "Next", show=False),
        Binding("N", "prev_match", "Prev", show=False),
        Binding("o", "open_entry", "Open", show=False),
        Binding("enter", "open_entry", "Open", show=False),
        Binding("O", "open_window", "Open all", show=False),
        Binding("h", "show_help", "Help"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        backend: Backend,
        config: AppConfig,
        *,
        query: str | None = None,
        time_range: TimeRange | None = None,
        session: ExplorerSession | None = None,
    ) -> None:
        super().__init__()
        self.session = session or ExplorerSession.from_disk(backend, config, suspend=self.suspend)
        if query is not None:
            self.session.filter_state.custom_filter = query
        if time_range is not None:
            self.session.filter_state.time_range = time_range
        self._pick_project_on_load = False
        self.theme = config.theme

    def compose(self) -> ComposeResult:
        yield Static(id="query-bar")
        yield LogView(id="log-view")
        yield StatusBar(id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        self.run_worker(self.session.dispatcher.run(self._on_completion), name="dispatcher", group="dispatcher")
        self.query_one("#log-view", LogView).focus()
        self.session.execute()
        self._refresh_view()

    def on_unmount(self) -> None:
        try:
            save_state(self.session.state)
        except OSError as exc:
            logger.warning("Could not save state: %s", exc)

    def _on_completion(self, message: object) -> None:
        self.session.handle(message)
        if isinstance(message, ProjectsLoaded) and self._pick_project_on_load:
            self._pick_project_on_load = False
            if isinstance(message.result, Ok):
                self._open_project_picker()
        self._refresh_view()

    def _refresh_view(self) -> None:
        session = self.session
        controller = session.controller
        query_bar = self.query_one("#query-bar", Static)
        base = session.filter_state.custom_filter.strip()
        query_bar.update(Text(base) if base else Text("(no filter: all logs)", style="dim"))
        log_view = self.query_one("#log-view", LogView)
        log_view.set_entries(controller.window, controller.offset, session.matches)
        self.query_one("#status-bar", StatusBar).update_info(
            StatusInfo(
                project=session.project,
                time_range=session.filter_state.time_range.label,
                severity=session.filter_state.severity.summary,
                count=len(controller.window),
                position=controller.offset,
                loading=controller.loading_state,
                auto_load_all=controller.auto_load_all,
                message=session.status,
                error=session.last_error is not None,
            )
        )

    def on_log_view_cursor_move(self, event: LogView.CursorMove) -> None:
        controller = self.session.controller
        if event.rows > 0:
            controller.scroll_down(event.rows)
        elif event.rows < 0:
            controller.scroll_up(-event.rows)
        self._refresh_view()

    # --- Query actions ---

    def action_edit_query(self) -> None:
        self.push_screen(
            QueryDialog(self.session.filter_state.custom_filter, self.session.history.suggestions()),
            callback=self._on_query_result,
        )

    def _on_query_result(self, result: str | None) -> None:
        if result is None:
            return
        self.session.execute(result)
        self._refresh_view()

    def action_refresh(self) -> None:
        self.session.refresh()
        self._refresh_view()

    def action_time_range(self) -> None:
        self.push_screen(TimeRangeDialog(self.session.filter_state.time_range), callback=self._on_time_range_result)

    def _on_time_range_result(self, result: TimeRange | None) -> None:
        if result is None:
            return
        self.session.set_time_range(result)
        self.session.execute()
        self._refresh_view()

    def action_cycle_severity(self) -> None:
        severity = self.session.cycle_min_severity()
        self.notify(f"Severity: {severity.summary}")
        self.session.execute()
        self._refresh_view()

    def action_select_severity(self) -> None:
        self.push_screen(SeverityDialog(self.session.filter_state.severity), callback=self._on_severity_result)

    def _on_severity_result(self, result: SeverityFilter | None) -> None:
        if result is None:
            return
        self.session.set_severity(result)
        self.session.execute()
        self._refresh_view()

    def action_toggle_auto_load_all(self) -> None:
        enabled = self.session.toggle_auto_load_all()
        self.notify(f"Auto-load all {'enabled' if enabled else 'disabled'}")
        self._refresh_view()

    # --- Projects ---

    def action_select_project(self) -> None:
        if self.session.projects:
            self._open_project_picker()
            return
        self._pick_project_on_load = True
        self.session.discover_projects()
        self._refresh_view()

    def _open_project_picker(self) -> None:
        items = [PickItem(key=p, label=p, current=p == self.session.project) for p in self.session.projects]
        self.push_screen(
            QueryListDialog("Projects", items, empty="(no projects found)"), callback=self._on_project_result
        )

    def _on_project_result(self, result: PickAction | None) -> None:
        if result is None:
            return
        self.session.set_project(result.key)
        self.session.execute()
        self._refresh_view()

    # --- History and library ---

    def action_show_history(self) -> None:
        items = [
            PickItem(
                key=r.filter,
                label=r.filter,
                detail=f"x{r.execute_count}  {r.executed_at:%Y-%m-%d %H:%M}",
            )
            for r in self.session.history.records
        ]
        self.push_screen(
            QueryListDialog("Query history", items, empty="(no history yet)"), callback=self._on_history_result
        )

    def _on_history_result(self, result: PickAction | None) -> None:
        if result is None:
            return
        self.session.history_entry(result.index)
        self._refresh_view()

    def action_show_library(self) -> None:
        items = [
            PickItem(key=r.name, label=r.name, detail=r.project or "", current=r.filter == self._current_filter())
            for r in self.session.library.records
        ]
        self.push_screen(
            QueryListDialog("Query library", items, empty="(no saved queries)", deletable=True),
            callback=self._on_library_result,
        )

    def _current_filter(self) -> str:
        return self.session.filter_state.custom_filter.strip()

    def _on_library_result(self, result: PickAction | None) -> None:
        if result is None:
            return
        if result.action == PickActionType.DELETE:
            self.session.delete_library_entry(result.key)
            self.notify(f"Deleted '{result.key}'")
        else:
            self.session.library_entry(result.index)
        self._refresh_view()

    def action_save_query(self) -> None:
        record = self.session.save_to_library()
        if record is None:
            self.notify(self.session.status, severity="warning")
        else:
            self.notify(f"Saved '{record.name}'")
        self._refresh_view()

    # --- Search ---

    def action_search(self) -> None:
        self.push_screen(SearchDialog(self.session.filter_state.search_term), callback=self._on_search_result)

    def _on_search_result(self, result: str | None) -> None:
        if result is None:
            return
        self.session.search(result)
        self._refresh_view()

    def action_next_match(self) -> None:
        if self.session.next_match() is None:
            self.notify("No matches", severity="warning")
        self._refresh_view()

    def action_prev_match(self) -> None:
        if self.session.next_match(backward=True) is None:
            self.notify("No matches", severity="warning")
        self._refresh_view()

    # --- External editor ---

    def action_open_entry(self) -> None:
        self.session.open_entry()
        self._refresh_view()

    def action_open_window(self) -> None:
        self.session.open_window()
        self._refresh_view()

    # --- Help ---

    def action_show_help(self) -> None:
        self.push_screen(HelpScreen())
