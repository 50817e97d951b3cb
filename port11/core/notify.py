from __future__ import annotations

from dataclasses import dataclass

from port11.core.errors import Severity


@dataclass(frozen=True)
class NotifyTimeouts:
    quick: float = 2.0
    normal: float = 4.0
    long: float = 8.0

    def for_severity(self, severity: Severity) -> float:
        if severity == "error":
            return self.long
        if severity == "warning":
            return self.normal
        return self.quick
