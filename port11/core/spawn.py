from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field
from typing import IO, Optional, Protocol

from port11.core.models import CommandSpec, StdStream


class SpawnedProcess(Protocol):
    @property
    def pid(self) -> int | None: ...

    @property
    def stdout(self) -> Optional[IO[str]]: ...

    @property
    def stderr(self) -> Optional[IO[str]]: ...

    def wait(self) -> int: ...

    def send_signal(self, signum: int) -> None: ...


class Spawner(Protocol):
    def spawn(self, spec: CommandSpec) -> SpawnedProcess: ...


@dataclass
class PopenProcess:
    popen: subprocess.Popen[str]

    exit_code: Optional[int] = field(init=False, default=None)

    @property
    def pid(self) -> int | None:
        return self.popen.pid

    @property
    def stdout(self) -> Optional[IO[str]]:
        return self.popen.stdout

    @property
    def stderr(self) -> Optional[IO[str]]:
        return self.popen.stderr

    def wait(self) -> int:
        """
        Block until the process exits and return its exit code.
        """
        self.exit_code = self.popen.wait()
        if self.popen.stdin is not None:
            try:
                self.popen.stdin.close()
            except OSError:
                pass
        return self.exit_code

    def send_signal(self, signum: int) -> None:
        """
        Deliver ``signum`` to the process.

        Popen silently ignores signals for a reaped process, so that case is
        reported explicitly.
        """
        if self.popen.poll() is not None:
            raise ProcessLookupError(f"Process {self.popen.pid} has already exited")
        self.popen.send_signal(signum)


class PopenSpawner:
    """Spawn the external tool, piping the streams its spec captures."""

    def spawn(self, spec: CommandSpec) -> PopenProcess:
        env = None
        if spec.env:
            env = os.environ.copy()
            env.update(spec.env)
        popen = subprocess.Popen(
            spec.argv,
            cwd=spec.cwd,
            env=env,
            stdin=_redirect(spec, "stdin"),
            stdout=_redirect(spec, "stdout"),
            stderr=_redirect(spec, "stderr"),
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
        )
        return PopenProcess(popen)


def _redirect(spec: CommandSpec, stream: StdStream) -> int:
    return subprocess.PIPE if stream in spec.capture else subprocess.DEVNULL
