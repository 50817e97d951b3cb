"""Shared fakes for the supervisor's collaborators."""

from __future__ import annotations

import itertools
import queue
import threading
import time
from pathlib import Path
from typing import Callable

import pytest

from port11.core.config import get_runtime_config
from port11.core.models import CommandSpec, LifecycleEvent
from port11.core.supervisor import ProcessSupervisor

_EOF = object()


class FakeStream:
    """Blocking line stream fed by the test."""

    def __init__(self) -> None:
        self._lines: queue.Queue[object] = queue.Queue()
        self.error: Exception | None = None

    def feed(self, text: str) -> None:
        self._lines.put(text)

    def fail(self, error: Exception) -> None:
        self._lines.put(error)

    def close(self) -> None:
        self._lines.put(_EOF)

    def readline(self) -> str:
        item = self._lines.get()
        if item is _EOF:
            self._lines.put(_EOF)
            return ""
        if isinstance(item, Exception):
            raise item
        return str(item)


class FakeProcess:
    def __init__(self, pid: int) -> None:
        self.pid = pid
        self.stdout = FakeStream()
        self.stderr = FakeStream()
        self.signals: list[int] = []
        self.signal_error: OSError | None = None
        self._exit_code: int | None = None
        self._exited = threading.Event()

    def wait(self) -> int:
        self._exited.wait()
        assert self._exit_code is not None
        return self._exit_code

    def send_signal(self, signum: int) -> None:
        if self.signal_error is not None:
            raise self.signal_error
        self.signals.append(signum)

    def finish(self, exit_code: int = 0) -> None:
        self.stdout.close()
        self.stderr.close()
        self._exit_code = exit_code
        self._exited.set()


class FakeSpawner:
    def __init__(self) -> None:
        self.specs: list[CommandSpec] = []
        self.processes: list[FakeProcess] = []
        self.errors: list[Exception] = []
        self._pids = itertools.count(1000)
        self._lock = threading.Lock()

    def spawn(self, spec: CommandSpec) -> FakeProcess:
        with self._lock:
            self.specs.append(spec)
            if self.errors:
                raise self.errors.pop(0)
            process = FakeProcess(next(self._pids))
            self.processes.append(process)
            return process

    @property
    def last(self) -> FakeProcess:
        return self.processes[-1]

    @property
    def total_signals(self) -> int:
        return sum(len(process.signals) for process in self.processes)


class FakeProbe:
    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.roots: list[Path] = []
        self.gate: threading.Event | None = None
        self.entered = threading.Event()

    def __call__(self, root: Path) -> bool:
        self.roots.append(root)
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(5)
        return self.result


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def notify(self, message: str, severity: str) -> None:
        self.messages.append((severity, message))

    @property
    def severities(self) -> list[str]:
        return [severity for severity, _ in self.messages]


class RecordingSink:
    def __init__(self) -> None:
        self.chunks: list[str] = []
        self.shown = 0

    def append(self, text: str) -> None:
        self.chunks.append(text)

    def show(self) -> None:
        self.shown += 1

    @property
    def text(self) -> str:
        return "".join(self.chunks)

    @property
    def lines(self) -> list[str]:
        return [line for line in self.text.splitlines() if line.strip()]


class RecordingAffordance:
    def __init__(self) -> None:
        self.visible: bool | None = None

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False


def wait_for(predicate: Callable[[], bool], timeout: float = 3.0) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return
        time.sleep(0.01)
    raise AssertionError("condition not met before timeout")


@pytest.fixture
def spawner() -> FakeSpawner:
    return FakeSpawner()


@pytest.fixture
def probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture
def supervisor(spawner: FakeSpawner, probe: FakeProbe):
    sup = ProcessSupervisor(spawner, probe)
    yield sup
    for process in spawner.processes:
        process.finish(0)
    sup.shutdown()


@pytest.fixture
def events(supervisor: ProcessSupervisor) -> list[LifecycleEvent]:
    recorded: list[LifecycleEvent] = []
    supervisor.subscribe(recorded.append)
    return recorded


@pytest.fixture
def spec(tmp_path: Path) -> CommandSpec:
    return CommandSpec(executable="tool", args=("run",), cwd=tmp_path)


@pytest.fixture(autouse=True)
def _isolated_runtime_config(monkeypatch, tmp_path):
    monkeypatch.setenv("PORT11_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("PORT11_SETTINGS_FILE", str(tmp_path / "settings.json"))
    get_runtime_config.cache_clear()
    yield
    get_runtime_config.cache_clear()
