from __future__ import annotations

from functools import partial
from pathlib import Path

from rich.markup import escape
from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.theme import Theme
from textual.widgets import Button, Footer

from port11 import __version__
from port11.core.command_provider import Port11CommandProvider
from port11.core.errors import Severity
from port11.core.locator import ToolLocator
from port11.core.logging import get_logger
from port11.core.messages import LifecycleUpdate
from port11.core.models import LifecycleEvent
from port11.core.notify import NotifyTimeouts
from port11.core.reflector import UIStateReflector
from port11.core.router import CommandRouter
from port11.core.settings_model import SettingsModel
from port11.core.settings_store import SettingsStore
from port11.core.supervisor import ProcessSupervisor
from port11.core.worker_groups import WorkerGroup
from port11.widgets import DebuggerBar, OutputConsole

logger = get_logger(__name__)


class AppNotifier:
    """Routes leveled messages to Textual toasts. Safe to call from workers."""

    def __init__(self, app: App, timeouts: NotifyTimeouts | None = None) -> None:
        self._app = app
        self._timeouts = timeouts or NotifyTimeouts()

    def notify(self, message: str, severity: Severity) -> None:
        self._app.notify(
            escape(message),
            severity=severity,
            timeout=self._timeouts.for_severity(severity),
        )


class Port11App(App):
    TITLE = "Port11 Debugger"
    CSS_PATH = Path(__file__).parent / "styles" / "index.tcss"
    COMMANDS = App.COMMANDS | {Port11CommandProvider}

    BINDINGS = [
        Binding("p", "play", "Play debugger", show=True),
        Binding("s", "stop", "Stop debugger", show=True),
        Binding("c", "clear_output", "Clear output", show=True),
    ]

    def __init__(
        self,
        *,
        supervisor: ProcessSupervisor,
        locator: ToolLocator,
        settings_store: SettingsStore,
        settings: SettingsModel,
    ) -> None:
        super().__init__()
        self.supervisor = supervisor
        self.locator = locator
        self.settings_store = settings_store
        self.settings = settings
        self.notify_timeouts = NotifyTimeouts()
        self.router = CommandRouter(
            supervisor,
            locator.resolve_spec,
            AppNotifier(self, self.notify_timeouts),
        )
        self._reflector: UIStateReflector | None = None

    def compose(self) -> ComposeResult:
        yield DebuggerBar(
            app_title=Port11App.TITLE,
            app_version=__version__,
            workspace=str(self.locator.workspace),
        )
        yield OutputConsole()
        yield Footer()

    def on_mount(self) -> None:
        self.theme_changed_signal.subscribe(self, self.on_theme_changed)
        theme = self.settings.userPreferences.theme
        if theme in self.available_themes:
            self.theme = theme
        bar = self.query_one(DebuggerBar)
        self._reflector = UIStateReflector(
            self.supervisor,
            play=bar.play_item,
            stop=bar.stop_item,
            sink=self.query_one(OutputConsole),
        )
        bar.status = self.supervisor.state
        self.supervisor.subscribe(self._forward_lifecycle_event)

    def on_unmount(self) -> None:
        self.supervisor.unsubscribe(self._forward_lifecycle_event)

    def on_theme_changed(self, theme: Theme) -> None:
        self.settings_store.update_theme(self.settings, theme.name)

    def _forward_lifecycle_event(self, event: LifecycleEvent) -> None:
        # Runs on supervisor threads under its lock; post_message never blocks.
        self.post_message(LifecycleUpdate(event))

    @on(LifecycleUpdate)
    def handle_lifecycle_update(self, message: LifecycleUpdate) -> None:
        if self._reflector is None:
            return
        event = message.event
        self._reflector.apply(event)
        self.router.handle_event(event)
        self.query_one(DebuggerBar).status = event.new_state

    @on(Button.Pressed, "#play_item")
    def handle_play_pressed(self, _: Button.Pressed) -> None:
        self.action_play()

    @on(Button.Pressed, "#stop_item")
    def handle_stop_pressed(self, _: Button.Pressed) -> None:
        self.action_stop()

    def action_play(self) -> None:
        self._dispatch(CommandRouter.PLAY, WorkerGroup.DEBUGGER_PLAY)

    def action_stop(self) -> None:
        self._dispatch(CommandRouter.STOP, WorkerGroup.DEBUGGER_STOP)

    def action_clear_output(self) -> None:
        self.query_one(OutputConsole).clear()

    def _dispatch(self, name: str, group: str) -> None:
        # The probe may touch the filesystem, so entry points run off the UI thread.
        self.run_worker(
            partial(self.router.invoke, name),
            group=group,
            exclusive=False,
            thread=True,
        )
