from __future__ import annotations

import pytest

from port11.core.models import ProcessState
from port11.core.router import CommandRouter

from conftest import RecordingNotifier, wait_for


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def router(supervisor, spec, notifier):
    router = CommandRouter(supervisor, lambda: spec, notifier)
    router.attach()
    yield router
    router.detach()


def test_entry_points_are_play_and_stop(router):
    assert router.entry_points == ("play", "stop")


def test_play_starts_and_reports_information(router, supervisor, notifier):
    router.invoke("play")

    assert supervisor.state is ProcessState.RUNNING
    assert notifier.messages == [("information", "Port11 debugger started.")]


def test_second_play_is_a_warning(router, supervisor, spawner, notifier):
    router.play()
    router.play()

    assert len(spawner.processes) == 1
    severity, message = notifier.messages[-1]
    assert severity == "warning"
    assert "already running" in message


def test_play_without_project_is_an_error_with_cause(router, probe, notifier, spec):
    probe.result = False
    router.play()

    severity, message = notifier.messages[-1]
    assert severity == "error"
    assert message.startswith("[tool_not_found]")
    assert str(spec.cwd) in message


def test_spawn_failure_is_an_error_and_play_can_retry(router, spawner, supervisor, notifier):
    spawner.errors.append(PermissionError(13, "Permission denied", "tool"))
    router.play()

    severity, message = notifier.messages[-1]
    assert severity == "error"
    assert "Permission denied" in message
    assert supervisor.state is ProcessState.IDLE

    router.play()
    assert supervisor.state is ProcessState.RUNNING
    assert notifier.messages[-1] == ("information", "Port11 debugger started.")


def test_stop_when_idle_is_a_warning(router, spawner, notifier):
    router.invoke("stop")

    severity, message = notifier.messages[-1]
    assert severity == "warning"
    assert "No debugger process" in message
    assert spawner.total_signals == 0


def test_stop_reports_information(router, supervisor, spawner, notifier):
    router.play()
    router.stop()

    assert notifier.messages[-1] == ("information", "Port11 debugger stopped.")
    assert len(spawner.last.signals) == 1
    spawner.last.finish(0)
    wait_for(lambda: supervisor.state is ProcessState.IDLE)


def test_signal_failure_is_an_error_but_frees_slot(router, supervisor, spawner, notifier):
    router.play()
    spawner.last.signal_error = ProcessLookupError("gone")
    router.stop()

    severity, message = notifier.messages[-1]
    assert severity == "error"
    assert message.startswith("[signal_failed]")
    assert supervisor.state is ProcessState.IDLE

    router.play()
    assert supervisor.state is ProcessState.RUNNING


def test_resolver_failure_never_reaches_host(supervisor, notifier):
    def broken_resolver():
        raise RuntimeError("settings unreadable")

    router = CommandRouter(supervisor, broken_resolver, notifier)
    router.play()

    severity, message = notifier.messages[-1]
    assert severity == "error"
    assert "settings unreadable" in message
    assert supervisor.state is ProcessState.IDLE


def test_unknown_entry_point_is_reported(router, notifier):
    router.invoke("helloWorld")

    assert notifier.messages == [("error", "Unknown command: helloWorld")]


def test_stream_failure_mid_run_is_reported(router, supervisor, spawner, notifier):
    router.play()
    spawner.last.stdout.fail(OSError("pipe broke"))
    wait_for(lambda: supervisor.state is ProcessState.IDLE)
    wait_for(lambda: len(notifier.messages) == 2)

    severity, message = notifier.messages[-1]
    assert severity == "error"
    assert message.startswith("[stream_error]")
    assert "pipe broke" in message


def test_unexpected_exit_is_reported(router, supervisor, spawner, notifier):
    router.play()
    spawner.last.finish(101)
    wait_for(lambda: supervisor.state is ProcessState.IDLE)

    assert notifier.messages[-1] == (
        "error",
        "[unexpected_exit] Debugger exited unexpectedly (exit code 101)",
    )


def test_clean_or_requested_exit_is_not_reported(router, supervisor, spawner, notifier):
    router.play()
    spawner.last.finish(0)
    wait_for(lambda: supervisor.state is ProcessState.IDLE)

    router.play()
    router.stop()
    spawner.last.finish(-15)
    wait_for(lambda: supervisor.state is ProcessState.IDLE)

    assert notifier.severities == ["information"] * 3


def test_detached_router_ignores_lifecycle_events(router, supervisor, spawner, notifier):
    router.play()
    router.detach()
    spawner.last.finish(2)
    wait_for(lambda: supervisor.state is ProcessState.IDLE)

    assert notifier.messages == [("information", "Port11 debugger started.")]
