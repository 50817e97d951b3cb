from rich.markup import escape
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.reactive import reactive
from textual.widgets import Label

from port11.core.models import ProcessState
from port11.widgets.status_item import StatusItem


class DebuggerBar(Container):
    """Top bar holding the play/stop affordances and the slot status."""

    status = reactive(ProcessState.IDLE, always_update=True)

    def __init__(self, *, app_title: str, app_version: str, workspace: str) -> None:
        super().__init__(id="debugger_bar")
        self.play_item = StatusItem("▶ Play Debugger", id="play_item", variant="success")
        self.play_item.tooltip = "Start Port11 Debugger"
        self.stop_item = StatusItem("■ Stop Debugger", id="stop_item", variant="error")
        self.stop_item.tooltip = "Stop Port11 Debugger"
        self.title_label = Horizontal(
            Label(app_title, id="bar_app_name"),
            Label(f"v{app_version}", id="bar_app_version"),
            id="app_meta_container",
        )
        self.status_label = Label("", id="bar_status")
        self._workspace = workspace

    def compose(self) -> ComposeResult:
        yield self.title_label
        yield self.play_item
        yield self.stop_item
        yield self.status_label

    def watch_status(self) -> None:
        label = {
            ProcessState.IDLE: "[dim]Idle[/dim]",
            ProcessState.STARTING: "[$warning]Starting[/]",
            ProcessState.RUNNING: "[$success]Running[/]",
            ProcessState.STOPPING: "[$warning]Stopping[/]",
            ProcessState.EXITED: "[dim]Exited[/dim]",
        }[self.status]
        self.status_label.update(f"{label} - {escape(self._workspace)}")
