from __future__ import annotations

from pathlib import Path

from platformdirs import user_config_path, user_log_path

APP_NAME = "port11"
APP_AUTHOR = "port11"
SETTINGS_FILENAME = "settings.json"


def default_settings_file() -> Path:
    return user_config_path(APP_NAME, APP_AUTHOR) / SETTINGS_FILENAME


def default_log_dir() -> Path:
    return user_log_path(APP_NAME, APP_AUTHOR)
