"""
Failure browser for Parity.
Lists stored failure records and shows verdict, both normalized outputs and
the original and minimized programs for the highlighted one.
"""
from typing import List, Optional

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import Screen
from textual.widgets import Footer, Header, Label, ListItem, ListView, Static

from parity.campaign import FailureRecord, FailureStore, format_failure_log


def _record_label(record: FailureRecord) -> str:
    kind_colors = {
        "mismatch": "red",
        "both_errored": "yellow",
        "infrastructure_error": "magenta",
    }
    color = kind_colors.get(record.verdict.kind.value, "dim")
    minimized = " [green]min[/]" if record.minimized_source is not None else ""
    return f"[{color}]{record.id}[/] {record.verdict.kind.value}{minimized}"


def render_record(record: FailureRecord) -> str:
    """Plain-text detail view of one record."""
    parts = [format_failure_log(record), "Program:", record.source.text.rstrip()]
    if record.minimized_source is not None:
        parts.extend(["", "Minimized program:", record.minimized_source.text.rstrip()])
        if record.minimization:
            parts.append(
                "({units_before} -> {units_after} units, {passes} passes)".format(**record.minimization)
            )
    return "\n".join(parts) + "\n"


class FailureBrowserScreen(Screen):
    """Two panes: failure list on the left, details on the right."""

    BINDINGS = [
        ("r", "reload", "Reload"),
        ("q", "app.quit", "Quit"),
    ]

    def __init__(self, store: FailureStore):
        super().__init__()
        self.store = store
        self.records: List[FailureRecord] = []
        self.selected_id: Optional[str] = None
        self.detail_text = ""

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="browser"):
            with Vertical(id="failure-list-container", classes="panel"):
                yield Label("[b]Failures[/b]", id="failure-count")
                yield ListView(id="failure-list")
            with VerticalScroll(id="failure-details-container", classes="panel"):
                yield Static("Select a failure to view details", id="failure-details", markup=False)
        yield Footer()

    async def on_mount(self) -> None:
        await self.load_records()

    async def load_records(self) -> None:
        self.records = self.store.list()
        list_view = self.query_one("#failure-list", ListView)
        # Item ids repeat across reloads, so the old items must be gone first
        await list_view.clear()
        for record in self.records:
            await list_view.append(ListItem(Label(_record_label(record)), id=record.id))
        self.query_one("#failure-count", Label).update(
            f"[b]Failures[/b] ({len(self.records)} in {self.store.output_dir})"
        )
        if self.records:
            self.show_record(self.records[0].id)
        else:
            self._set_details(f"No failures in {self.store.output_dir}")

    def show_record(self, record_id: str) -> None:
        record = next((r for r in self.records if r.id == record_id), None)
        if record is None:
            return
        self.selected_id = record_id
        self._set_details(render_record(record))

    def _set_details(self, text: str) -> None:
        self.detail_text = text
        self.query_one("#failure-details", Static).update(text)

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        if event.item is not None and event.item.id:
            self.show_record(event.item.id)

    async def action_reload(self) -> None:
        await self.load_records()


class FailureBrowserApp(App):
    """Browse the failures of one output directory."""

    TITLE = "Parity failures"
    CSS = """
    #failure-list-container { width: 40%; }
    #failure-details-container { width: 60%; }
    .panel { border: round $accent; }
    """

    def __init__(self, store: FailureStore):
        super().__init__()
        self.store = store

    def on_mount(self) -> None:
        self.push_screen(FailureBrowserScreen(self.store))
