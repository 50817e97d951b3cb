from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any


def get_logger(name: str = "port11") -> logging.Logger:
    return logging.getLogger(name)


def configure_logging(
    *,
    level: str = "info",
    format_name: str = "json",
    stream=None,
    log_dir: Path | None = None,
    filename: str = "port11.log",
) -> None:
    normalized = level.strip().upper()
    level_value = getattr(logging, normalized, logging.INFO)
    root = logging.getLogger()
    root.setLevel(level_value)
    if root.handlers:
        return
    if format_name == "json":
        formatter = logging.Formatter("%(message)s")
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    if stream is None:
        env_dir = os.environ.get("PORT11_LOG_DIR")
        if env_dir:
            log_dir = Path(env_dir)
        if log_dir is None:
            # Writing to the terminal would corrupt the Textual screen.
            root.addHandler(logging.NullHandler())
            return
        log_dir.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_dir / filename, encoding="utf-8")
    else:
        handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def log_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    payload = {"event": event, **fields}
    logger.info(json.dumps(payload, sort_keys=True, default=str))
