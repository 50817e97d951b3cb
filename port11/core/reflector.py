from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from port11.core.models import (
    ExitNotice,
    FailureNotice,
    LifecycleEvent,
    OutputChunk,
    ProcessState,
)

if TYPE_CHECKING:
    from port11.core.supervisor import ProcessSupervisor


class Affordance(Protocol):
    def show(self) -> None: ...

    def hide(self) -> None: ...


class OutputSink(Protocol):
    def append(self, text: str) -> None: ...

    def show(self) -> None: ...


START_BANNER = "Building and starting Port11 debugger...\n"


def exit_summary(exit_code: int) -> str:
    return f"\nProcess exited with code {exit_code}\n"


def failure_summary(reason: str) -> str:
    return f"\nError: {reason}\n"


class UIStateReflector:
    """Mirrors supervisor state onto the play/stop affordances and the output sink.

    Holds no state of its own: affordance visibility is recomputed from the
    ``new_state`` of every event.
    """

    def __init__(
        self,
        supervisor: "ProcessSupervisor",
        *,
        play: Affordance,
        stop: Affordance,
        sink: OutputSink,
    ) -> None:
        self._supervisor = supervisor
        self._play = play
        self._stop = stop
        self._sink = sink
        self.render_state(supervisor.state)

    def attach(self) -> None:
        self._supervisor.subscribe(self.apply)

    def detach(self) -> None:
        self._supervisor.unsubscribe(self.apply)

    def apply(self, event: LifecycleEvent) -> None:
        payload = event.payload
        if isinstance(payload, OutputChunk):
            self._sink.append(payload.data)
        elif isinstance(payload, ExitNotice):
            self._sink.append(exit_summary(payload.exit_code))
        elif isinstance(payload, FailureNotice):
            self._sink.append(failure_summary(payload.reason))
        elif (
            event.previous_state is ProcessState.IDLE
            and event.new_state is ProcessState.STARTING
        ):
            self._sink.show()
            self._sink.append(START_BANNER)
        self.render_state(event.new_state)

    def render_state(self, state: ProcessState) -> None:
        if state is ProcessState.IDLE:
            self._stop.hide()
            self._play.show()
        else:
            self._play.hide()
            self._stop.show()
