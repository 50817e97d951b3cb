from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Protocol

from port11.core.errors import (
    ErrorCode,
    Port11Error,
    Severity,
    SupervisorError,
    format_error,
    wrap_error,
)
from port11.core.logging import get_logger, log_event
from port11.core.models import (
    CommandSpec,
    ExitNotice,
    FailureNotice,
    LifecycleEvent,
    ProcessState,
)

if TYPE_CHECKING:
    from port11.core.supervisor import ProcessSupervisor

logger = get_logger(__name__)

SpecResolver = Callable[[], CommandSpec]


class Notifier(Protocol):
    def notify(self, message: str, severity: Severity) -> None: ...


class CommandRouter:
    """Adapts host command invocations to supervisor calls.

    Every failure ends up as a notification; nothing propagates to the host.
    """

    PLAY = "play"
    STOP = "stop"

    def __init__(
        self,
        supervisor: "ProcessSupervisor",
        resolve_spec: SpecResolver,
        notifier: Notifier,
    ) -> None:
        self._supervisor = supervisor
        self._resolve_spec = resolve_spec
        self._notifier = notifier
        self._entry_points: dict[str, Callable[[], None]] = {
            self.PLAY: self.play,
            self.STOP: self.stop,
        }

    @property
    def entry_points(self) -> tuple[str, ...]:
        return tuple(self._entry_points)

    def attach(self) -> None:
        self._supervisor.subscribe(self.handle_event)

    def detach(self) -> None:
        self._supervisor.unsubscribe(self.handle_event)

    def handle_event(self, event: LifecycleEvent) -> None:
        """Notify about failures that happen after ``play`` has returned.

        Start and stop failures are raised to the calling entry point and
        reported there, so only mid-run failures are picked up here.
        """
        payload = event.payload
        if isinstance(payload, FailureNotice) and payload.code == ErrorCode.STREAM_ERROR:
            self._report(SupervisorError(code=payload.code, message=payload.reason))
        elif (
            isinstance(payload, ExitNotice)
            and event.previous_state is ProcessState.RUNNING
            and payload.exit_code != 0
        ):
            self._report(
                SupervisorError(
                    code=ErrorCode.UNEXPECTED_EXIT,
                    message="Debugger exited unexpectedly",
                    detail=f"exit code {payload.exit_code}",
                )
            )

    def invoke(self, name: str) -> None:
        handler = self._entry_points.get(name)
        if handler is None:
            self._notifier.notify(f"Unknown command: {name}", "error")
            return
        handler()

    def play(self) -> None:
        try:
            spec = self._resolve_spec()
            self._supervisor.start(spec)
        except SupervisorError as exc:
            self._report(exc)
            return
        except Exception as exc:
            logger.exception("Unexpected failure while starting the debugger")
            self._report(wrap_error(exc, code=ErrorCode.SPAWN_FAILED, message="Failed to start debugger"))
            return
        log_event(logger, "command_play", command=spec.describe(), cwd=spec.cwd)
        self._notifier.notify("Port11 debugger started.", "information")

    def stop(self) -> None:
        try:
            self._supervisor.stop()
        except SupervisorError as exc:
            # SIGNAL_FAILED has already freed the slot inside the supervisor.
            self._report(exc)
            return
        except Exception as exc:
            logger.exception("Unexpected failure while stopping the debugger")
            self._report(wrap_error(exc, code=ErrorCode.SIGNAL_FAILED, message="Failed to stop debugger"))
            return
        log_event(logger, "command_stop")
        self._notifier.notify("Port11 debugger stopped.", "information")

    def _report(self, error: Port11Error) -> None:
        message, severity = format_error(error)
        log_event(logger, "command_failed", code=error.code, severity=severity, message=str(error))
        self._notifier.notify(message, severity)
