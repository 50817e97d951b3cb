from __future__ import annotations

import signal
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class RuntimeConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PORT11_", case_sensitive=False)

    log_level: str = "info"
    log_format: str = "json"
    log_dir: Path | None = None
    settings_file: Path | None = None
    termination_signal: str = "SIGTERM"

    def resolve_signal(self) -> int:
        name = self.termination_signal.strip().upper()
        if not name.startswith("SIG"):
            name = f"SIG{name}"
        value = getattr(signal, name, None)
        if not isinstance(value, int):
            return signal.SIGTERM
        return int(value)


@lru_cache
def get_runtime_config() -> RuntimeConfig:
    return RuntimeConfig()
