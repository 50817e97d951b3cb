from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Literal, Mapping, Union

StreamName = Literal["stdout", "stderr"]
StdStream = Literal["stdin", "stdout", "stderr"]

ALL_STREAMS: tuple[StdStream, ...] = ("stdin", "stdout", "stderr")


class ProcessState(Enum):
    IDLE = auto()      # slot free
    STARTING = auto()  # slot reserved, probing / spawning
    RUNNING = auto()   # process owned, streams attached
    STOPPING = auto()  # termination signal sent, exit not yet observed
    EXITED = auto()    # exit observed, about to return to IDLE


ACTIVE_STATES = frozenset(
    {ProcessState.STARTING, ProcessState.RUNNING, ProcessState.STOPPING}
)


@dataclass(frozen=True, slots=True)
class CommandSpec:
    executable: str
    args: tuple[str, ...] = ()
    cwd: Path = field(default_factory=Path.cwd)
    env: Mapping[str, str] | None = None
    # Streams not listed here are connected to the null device.
    capture: tuple[StdStream, ...] = ALL_STREAMS

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.args]

    def describe(self) -> str:
        return " ".join(self.argv)


@dataclass(frozen=True, slots=True)
class FailureRecord:
    code: str
    reason: str


@dataclass(frozen=True, slots=True)
class ProcessHandle:
    """Snapshot of the single process slot."""

    state: ProcessState = ProcessState.IDLE
    pid: int | None = None
    exit_code: int | None = None
    last_error: FailureRecord | None = None
    run_id: int = 0

    @property
    def is_active(self) -> bool:
        return self.state in ACTIVE_STATES


@dataclass(frozen=True, slots=True)
class OutputChunk:
    stream: StreamName
    data: str


@dataclass(frozen=True, slots=True)
class ExitNotice:
    exit_code: int


@dataclass(frozen=True, slots=True)
class FailureNotice:
    code: str
    reason: str


EventPayload = Union[OutputChunk, ExitNotice, FailureNotice, None]


@dataclass(frozen=True, slots=True)
class LifecycleEvent:
    previous_state: ProcessState
    new_state: ProcessState
    sequence: int
    payload: EventPayload = None
