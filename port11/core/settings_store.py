from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from port11.core.logging import get_logger
from port11.core.settings_model import SettingsModel

logger = get_logger(__name__)


class SettingsStore:
    """Load and persist port11 user settings."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> SettingsModel:
        """Read settings from disk, falling back to defaults on bad input."""
        raw: dict[str, Any] = {}
        if self._path.exists():
            try:
                loaded = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Unable to read settings %s: %s", self._path, exc)
                loaded = {}
            if isinstance(loaded, dict):
                raw = loaded
        try:
            return SettingsModel.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Ignoring invalid settings %s: %s", self._path, exc)
            return SettingsModel()

    def save(self, settings: SettingsModel) -> None:
        """Persist settings to disk."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(settings.model_dump(), indent=4),
            encoding="utf-8",
        )

    def update_theme(self, settings: SettingsModel, theme_name: str) -> None:
        """Store the active theme."""
        settings.userPreferences.theme = theme_name
        self.save(settings)
