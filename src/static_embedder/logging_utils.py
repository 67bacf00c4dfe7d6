"""Logging helpers for the embedder CLIs and service."""

from __future__ import annotations

import logging
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def env_log_level(default: int = logging.INFO) -> int:
    """Level from STATIC_EMBED_LOG_LEVEL (name or number), else ``default``."""
    raw = (os.getenv("STATIC_EMBED_LOG_LEVEL") or "").strip()
    if not raw:
        return default
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else default


def configure_logging(level: int = logging.INFO, log_paths: list[str] | None = None) -> None:
    """Configure default logging if no handlers are present.

    Besides the console handler, every entry of ``log_paths`` (and the file named
    by STATIC_EMBED_LOG_PATH) receives a copy of the records.
    """
    root = logging.getLogger()
    if root.handlers:
        return
    paths = list(log_paths or [])
    env_path = (os.getenv("STATIC_EMBED_LOG_PATH") or "").strip()
    if env_path and env_path not in paths:
        paths.append(env_path)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    for entry in paths:
        path = Path(entry)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT, handlers=handlers)
