"""Logging helpers for the sheetmap package."""

# Module responsibilities:
# - Configure the "sheetmap" logger once: rotating debug file plus warning-level console.
# - Honour SHEETMAP_LOG_DIR so embedding applications and tests can relocate the log file.

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

ROOT_LOGGER = "sheetmap"
LOG_DIR_ENV = "SHEETMAP_LOG_DIR"
DEFAULT_LOG_BASE = Path.home() / "SheetMap" / "logs"
LOG_FILE = "sheetmap.log"
_LOG_CONFIGURED = False


def log_dir() -> Path:
    """Return the log directory, creating it when missing."""
    env_dir = os.environ.get(LOG_DIR_ENV)
    target = Path(env_dir) if env_dir else DEFAULT_LOG_BASE
    target.mkdir(parents=True, exist_ok=True)
    return target


def _configure_logging() -> None:
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        return

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = logging.handlers.RotatingFileHandler(
        log_dir() / LOG_FILE, maxBytes=2_000_000, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.WARNING)

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)
    root_logger.propagate = False

    _LOG_CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return ``sheetmap.<name>``, configuring the package logger on first use."""

    _configure_logging()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
