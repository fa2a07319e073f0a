from __future__ import annotations

from pathlib import Path

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.timer import Timer
from textual.widgets import DataTable, Footer, Label

from ..bridge import EventBridge, message_for
from ..loop import ServiceLoop
from ..models import MenuItem, MenuModel
from ..services import ServiceController


class ServiceDashApp(App):
    """Terminal rendition of the tray menu.

    Key presses and row selections go through the event bridge like tray
    clicks do; a timer drains it via ServiceLoop.tick on the app's own loop.
    """

    CSS_PATH = Path(__file__).with_name("app.tcss")
    BINDINGS = [
        Binding("t", "send('toggle')", "Toggle"),
        Binding("r", "send('refresh')", "Refresh"),
        Binding("q", "send('quit')", "Quit"),
    ]

    def __init__(self, controller: ServiceController, poll_interval: float = 0.1) -> None:
        super().__init__()
        self.controller = controller
        self.poll_interval = poll_interval
        self.bridge = EventBridge()
        self._sender = self.bridge.sender()
        self.table: DataTable | None = None
        self.state_label: Label | None = None
        self._timer: Timer | None = None
        self.service_loop = ServiceLoop(controller, _DashView(self), self.bridge)

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            with Horizontal():
                yield Label(f"{self.controller.title} Control", id="title")
                self.state_label = Label("", id="state")
                yield self.state_label
        with Container(id="content"):
            self.table = DataTable(zebra_stripes=False, cursor_type="row")
            self.table.add_columns("Menu")
            yield self.table
        yield Footer()

    def on_mount(self) -> None:
        self.service_loop.rebuild()
        self._timer = self.set_interval(self.poll_interval, self._pump)

    def _pump(self) -> None:
        if not self.service_loop.tick() and self._timer is not None:
            self._timer.stop()

    # called from ServiceLoop through _DashView
    def render_model(self, model: MenuModel) -> None:
        assert self.table
        self.table.clear(columns=False)
        for entry in model.entries:
            if isinstance(entry, MenuItem):
                label = entry.label if entry.enabled else f"  {entry.label}"
                self.table.add_row(label, key=entry.id)
            else:
                self.table.add_row("─" * 24)
        if self.state_label is not None:
            self.state_label.update("running" if model.active else "stopped")

    def close_view(self) -> None:
        self.exit()

    def action_send(self, item_id: str) -> None:
        self._sender.send(message_for(item_id))

    @on(DataTable.RowSelected)
    def _on_row_selected(self, event: DataTable.RowSelected) -> None:
        key = event.row_key.value
        if key is None:
            return
        self._sender.send(message_for(key))


class _DashView:
    """Adapter so the app's `render` (a Textual method) is not shadowed."""

    def __init__(self, app: ServiceDashApp) -> None:
        self._app = app

    def render(self, model: MenuModel) -> None:
        self._app.render_model(model)

    def close(self) -> None:
        self._app.close_view()


def run_dash(controller: ServiceController, poll_interval: float = 0.1) -> None:
    app = ServiceDashApp(controller, poll_interval=poll_interval)
    app.run()
