from __future__ import annotations

import argparse
import sys
import threading
from pathlib import Path
from typing import Sequence

from rich.console import Console

from port11 import __version__
from port11.core.config import RuntimeConfig, get_runtime_config
from port11.core.errors import Severity
from port11.core.locator import ToolLocator
from port11.core.logging import configure_logging
from port11.core.models import ExitNotice, LifecycleEvent, ProcessState
from port11.core.paths import default_log_dir, default_settings_file
from port11.core.reflector import UIStateReflector
from port11.core.router import CommandRouter
from port11.core.settings_model import SettingsModel
from port11.core.settings_store import SettingsStore
from port11.core.spawn import PopenSpawner
from port11.core.supervisor import ProcessSupervisor

_SEVERITY_STYLES: dict[str, str] = {
    "information": "cyan",
    "warning": "yellow",
    "error": "bold red",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="port11",
        description="Port11 — start, watch, and stop the Port11 debugger agent",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Print version and exit.",
    )

    parser.add_argument(
        "-w",
        "--workspace",
        type=Path,
        default=Path.cwd(),
        help="Workspace directory; the agent project is looked up in its parent (default: cwd).",
    )

    parser.add_argument(
        "--no-ui",
        action="store_true",
        help="Parse CLI arguments without launching the UI.",
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser(
        "check",
        help="Report where the agent project is expected and whether it was found.",
    )

    subparsers.add_parser(
        "run",
        help="Run the agent without the UI, streaming its output to stdout. Ctrl+C stops it.",
    )

    return parser


class ConsoleNotifier:
    """Prints notifications to stderr."""

    def __init__(self, console: Console) -> None:
        self._console = console

    def notify(self, message: str, severity: Severity) -> None:
        style = _SEVERITY_STYLES.get(severity, "")
        self._console.print(message, style=style, markup=False, highlight=False)


class StreamSink:
    """Writes debugger output verbatim to a text stream."""

    def __init__(self, stream=None) -> None:
        self._stream = stream or sys.stdout

    def append(self, text: str) -> None:
        self._stream.write(text)
        self._stream.flush()

    def show(self) -> None:
        return None


class _HiddenAffordance:
    def show(self) -> None:
        return None

    def hide(self) -> None:
        return None


def _build_supervisor(locator: ToolLocator, config: RuntimeConfig) -> ProcessSupervisor:
    return ProcessSupervisor(
        PopenSpawner(),
        locator.probe,
        termination_signal=config.resolve_signal(),
    )


def run_check(locator: ToolLocator) -> int:
    console = Console()
    root = locator.resolve_root()
    found = locator.probe(root)
    spec = locator.resolve_spec()
    console.print(f"[bold]Project root:[/bold] {root}")
    console.print(f"[bold]Marker:[/bold] {locator.tool.marker}")
    console.print(f"[bold]Command:[/bold] {spec.describe()}")
    if found:
        console.print("[green]Agent project found.[/green]")
        return 0
    console.print("[red]Agent project not found.[/red]")
    return 1


def run_headless(locator: ToolLocator, config: RuntimeConfig) -> int:
    supervisor = _build_supervisor(locator, config)
    router = CommandRouter(supervisor, locator.resolve_spec, ConsoleNotifier(Console(stderr=True)))
    reflector = UIStateReflector(
        supervisor,
        play=_HiddenAffordance(),
        stop=_HiddenAffordance(),
        sink=StreamSink(),
    )
    reflector.attach()
    router.attach()

    finished = threading.Event()
    exit_codes: list[int] = []

    def track(event: LifecycleEvent) -> None:
        if isinstance(event.payload, ExitNotice):
            exit_codes.append(event.payload.exit_code)
        if event.new_state is ProcessState.IDLE and event.previous_state is not ProcessState.IDLE:
            finished.set()

    supervisor.subscribe(track)
    router.invoke(CommandRouter.PLAY)

    try:
        while not finished.wait(0.2):
            pass
    except KeyboardInterrupt:
        router.invoke(CommandRouter.STOP)
        finished.wait()
    finally:
        reflector.detach()
        router.detach()
        supervisor.unsubscribe(track)

    if exit_codes:
        return exit_codes[-1] if exit_codes[-1] >= 0 else 1
    return 1


def run_app(
    locator: ToolLocator,
    config: RuntimeConfig,
    settings_store: SettingsStore,
    settings: SettingsModel,
) -> int:
    from port11.app import Port11App

    supervisor = _build_supervisor(locator, config)
    app = Port11App(
        supervisor=supervisor,
        locator=locator,
        settings_store=settings_store,
        settings=settings,
    )
    try:
        app.run()
    finally:
        # Session end releases the slot, signalling any agent still running.
        supervisor.shutdown()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = get_runtime_config()
    configure_logging(
        level=config.log_level,
        format_name=config.log_format,
        log_dir=config.log_dir or default_log_dir(),
    )

    settings_store = SettingsStore(config.settings_file or default_settings_file())
    settings = settings_store.load()
    locator = ToolLocator(workspace=args.workspace, tool=settings.tool)

    if args.no_ui and args.command is None:
        return 0
    if args.command == "check":
        return run_check(locator)
    if args.command == "run":
        return run_headless(locator, config)
    return run_app(locator, config, settings_store, settings)
