from __future__ import annotations

import itertools
import signal
import threading
from dataclasses import replace
from pathlib import Path
from typing import IO, Callable, Optional

from port11.core.errors import ErrorCode, SupervisorError
from port11.core.logging import get_logger, log_event
from port11.core.models import (
    ACTIVE_STATES,
    CommandSpec,
    EventPayload,
    ExitNotice,
    FailureNotice,
    FailureRecord,
    LifecycleEvent,
    OutputChunk,
    ProcessHandle,
    ProcessState,
    StreamName,
)
from port11.core.spawn import SpawnedProcess, Spawner

logger = get_logger(__name__)

LifecycleListener = Callable[[LifecycleEvent], None]
ToolProbe = Callable[[Path], bool]


class ProcessSupervisor:
    """
    Owns the single external-process slot.

    Every state change, whether it comes from ``start``/``stop`` or from the
    reader and exit-waiter threads, happens under one lock. Events are
    numbered and handed to listeners inside that same critical section, so
    listeners observe them in emission order.
    """

    # Output still buffered in the pipes after exit is drained for at most
    # this long; a grandchild holding the pipes open must not wedge the slot.
    _READER_DRAIN_TIMEOUT_S = 2.0

    def __init__(
        self,
        spawner: Spawner,
        probe: ToolProbe,
        *,
        termination_signal: int = signal.SIGTERM,
    ) -> None:
        self._spawner = spawner
        self._probe = probe
        self._termination_signal = termination_signal
        self._lock = threading.RLock()
        self._handle = ProcessHandle()
        self._process: SpawnedProcess | None = None
        self._listeners: list[LifecycleListener] = []
        self._sequence = itertools.count(1)
        self._run_ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def handle(self) -> ProcessHandle:
        with self._lock:
            return self._handle

    @property
    def state(self) -> ProcessState:
        with self._lock:
            return self._handle.state

    def is_running(self) -> bool:
        with self._lock:
            return self._handle.is_active

    def subscribe(self, listener: LifecycleListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: LifecycleListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, spec: CommandSpec) -> None:
        with self._lock:
            if self._handle.state is not ProcessState.IDLE:
                raise SupervisorError(
                    code=ErrorCode.ALREADY_RUNNING,
                    message="Debugger is already running. Stop it first.",
                    severity="warning",
                )
            run_id = next(self._run_ids)
            self._transition(ProcessState.STARTING, run_id=run_id, last_error=None)

        # The probe touches the filesystem, so it runs without the lock.
        found = self._run_probe(spec.cwd)

        with self._lock:
            if self._handle.run_id != run_id or self._handle.state is ProcessState.IDLE:
                # Slot was released by shutdown while probing.
                raise SupervisorError(
                    code=ErrorCode.START_CANCELLED,
                    message="Start cancelled; the session was shut down.",
                    severity="warning",
                )
            if self._handle.state is ProcessState.STOPPING:
                error = SupervisorError(
                    code=ErrorCode.START_CANCELLED,
                    message="Start cancelled by a stop request.",
                    severity="warning",
                )
                self._release(error)
                raise error
            if not found:
                error = SupervisorError(
                    code=ErrorCode.TOOL_NOT_FOUND,
                    message="Could not find the debugger project.",
                    detail=str(spec.cwd),
                )
                self._release(error)
                raise error

            try:
                process = self._spawner.spawn(spec)
            except (OSError, ValueError) as exc:
                error = SupervisorError(
                    code=ErrorCode.SPAWN_FAILED,
                    message="Failed to start debugger",
                    detail=str(exc),
                )
                self._release(error)
                raise error from exc

            self._process = process
            self._transition(ProcessState.RUNNING, pid=process.pid)
            self._attach_listeners(run_id, process, spec)

    def stop(self) -> None:
        with self._lock:
            state = self._handle.state
            if state is ProcessState.STOPPING:
                raise SupervisorError(
                    code=ErrorCode.NOT_RUNNING,
                    message="Debugger is already stopping.",
                    severity="warning",
                )
            if state not in ACTIVE_STATES:
                raise SupervisorError(
                    code=ErrorCode.NOT_RUNNING,
                    message="No debugger process is currently running.",
                    severity="warning",
                )

            process = self._process
            self._transition(ProcessState.STOPPING)
            if process is None:
                # Still probing; start() sees STOPPING and abandons the spawn.
                return

            try:
                process.send_signal(self._termination_signal)
            except OSError as exc:
                error = SupervisorError(
                    code=ErrorCode.SIGNAL_FAILED,
                    message="Failed to stop debugger",
                    detail=str(exc),
                )
                self._release(error)
                raise error from exc
            log_event(
                logger,
                "termination_signal_sent",
                pid=process.pid,
                signal=int(self._termination_signal),
            )

    def shutdown(self) -> None:
        """Release the slot at session end, signalling any owned process."""
        with self._lock:
            if self._handle.state not in ACTIVE_STATES:
                return
            process = self._process
            if process is not None:
                try:
                    process.send_signal(self._termination_signal)
                except OSError as exc:
                    logger.warning("Termination signal failed during shutdown: %s", exc)
            self._process = None
            self._transition(ProcessState.IDLE)

    # ------------------------------------------------------------------
    # Asynchronous listeners
    # ------------------------------------------------------------------

    def _attach_listeners(
        self,
        run_id: int,
        process: SpawnedProcess,
        spec: CommandSpec,
    ) -> None:
        readers: list[threading.Thread] = []
        streams: tuple[tuple[StreamName, Optional[IO[str]]], ...] = (
            ("stdout", process.stdout),
            ("stderr", process.stderr),
        )
        for name, stream in streams:
            if stream is None:
                continue
            reader = threading.Thread(
                target=self._read_stream,
                args=(run_id, name, stream),
                name=f"port11-{run_id}-{name}",
                daemon=True,
            )
            readers.append(reader)

        waiter = threading.Thread(
            target=self._await_exit,
            args=(run_id, process, readers),
            name=f"port11-{run_id}-exit",
            daemon=True,
        )
        for reader in readers:
            reader.start()
        waiter.start()
        log_event(logger, "process_started", pid=process.pid, command=spec.describe(), cwd=spec.cwd)

    def _read_stream(self, run_id: int, name: StreamName, stream: IO[str]) -> None:
        try:
            for chunk in iter(stream.readline, ""):
                with self._lock:
                    if not self._owns_slot(run_id):
                        continue
                    state = self._handle.state
                    self._emit(state, state, OutputChunk(stream=name, data=chunk))
        except (OSError, ValueError) as exc:
            self._fail_run(
                run_id,
                SupervisorError(
                    code=ErrorCode.STREAM_ERROR,
                    message=f"Lost the debugger {name} stream",
                    detail=str(exc),
                ),
            )

    def _await_exit(
        self,
        run_id: int,
        process: SpawnedProcess,
        readers: list[threading.Thread],
    ) -> None:
        try:
            exit_code = process.wait()
        except OSError as exc:
            self._fail_run(
                run_id,
                SupervisorError(
                    code=ErrorCode.STREAM_ERROR,
                    message="Lost track of the debugger process",
                    detail=str(exc),
                ),
            )
            return

        for reader in readers:
            reader.join(timeout=self._READER_DRAIN_TIMEOUT_S)

        with self._lock:
            if not self._owns_slot(run_id):
                log_event(logger, "stale_exit_ignored", run_id=run_id, exit_code=exit_code)
                return
            self._process = None
            self._transition(
                ProcessState.EXITED,
                payload=ExitNotice(exit_code=exit_code),
                exit_code=exit_code,
            )
            self._transition(ProcessState.IDLE)

    def _fail_run(self, run_id: int, error: SupervisorError) -> None:
        with self._lock:
            if not self._owns_slot(run_id):
                return
            process = self._process
            if process is not None:
                try:
                    process.send_signal(self._termination_signal)
                except OSError as exc:
                    logger.warning("Termination signal failed after %s: %s", error.code, exc)
            self._release(error)

    # ------------------------------------------------------------------
    # State + events (callers hold the lock)
    # ------------------------------------------------------------------

    def _owns_slot(self, run_id: int) -> bool:
        return self._handle.run_id == run_id and self._handle.state in ACTIVE_STATES

    def _run_probe(self, root: Path) -> bool:
        try:
            return bool(self._probe(root))
        except OSError as exc:
            logger.warning("Tool probe failed for %s: %s", root, exc)
            return False

    def _release(self, error: SupervisorError) -> None:
        self._process = None
        self._transition(
            ProcessState.IDLE,
            payload=FailureNotice(code=error.code, reason=str(error)),
            last_error=FailureRecord(code=error.code, reason=str(error)),
        )

    def _transition(
        self,
        new_state: ProcessState,
        *,
        payload: EventPayload = None,
        **changes: object,
    ) -> None:
        previous = self._handle.state
        if new_state is ProcessState.IDLE:
            changes.update(pid=None, exit_code=None)
        self._handle = replace(self._handle, state=new_state, **changes)  # type: ignore[arg-type]
        log_event(
            logger,
            "process_transition",
            previous=previous.name,
            new=new_state.name,
            run_id=self._handle.run_id,
        )
        self._emit(previous, new_state, payload)

    def _emit(
        self,
        previous: ProcessState,
        new_state: ProcessState,
        payload: EventPayload,
    ) -> None:
        event = LifecycleEvent(
            previous_state=previous,
            new_state=new_state,
            sequence=next(self._sequence),
            payload=payload,
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Lifecycle listener %r failed", listener)
