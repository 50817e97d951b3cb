from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Severity = Literal["error", "warning", "information"]


class ErrorCode:
    ALREADY_RUNNING = "already_running"
    NOT_RUNNING = "not_running"
    START_CANCELLED = "start_cancelled"
    TOOL_NOT_FOUND = "tool_not_found"
    SPAWN_FAILED = "spawn_failed"
    SIGNAL_FAILED = "signal_failed"
    STREAM_ERROR = "stream_error"
    UNEXPECTED_EXIT = "unexpected_exit"


# Usage races are expected and surface as warnings, not failures.
DEFAULT_SEVERITY_BY_CODE: dict[str, Severity] = {
    ErrorCode.ALREADY_RUNNING: "warning",
    ErrorCode.NOT_RUNNING: "warning",
    ErrorCode.START_CANCELLED: "warning",
}


@dataclass
class Port11Error(Exception):
    code: str
    message: str
    detail: str | None = None
    severity: Severity = "error"

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} ({self.detail})"
        return self.message


@dataclass
class SupervisorError(Port11Error):
    """Raised by the process supervisor for every rejected or failed transition."""


def severity_for(error: BaseException) -> Severity:
    if isinstance(error, Port11Error):
        return DEFAULT_SEVERITY_BY_CODE.get(error.code, error.severity)
    return "error"


def format_error(error: BaseException) -> tuple[str, Severity]:
    if isinstance(error, Port11Error):
        prefix = f"[{error.code}] " if error.code else ""
        return f"{prefix}{error}", severity_for(error)
    return f"{error}", "error"


def wrap_error(
    error: BaseException,
    *,
    code: str,
    message: str,
    severity: Severity = "error",
) -> Port11Error:
    if isinstance(error, Port11Error):
        return error
    detail = str(error)
    return Port11Error(code=code, message=message, detail=detail, severity=severity)
