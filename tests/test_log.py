from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

from sheetmap.utils.log import LOG_DIR_ENV, LOG_FILE, get_logger, log_dir


def test_loggers_share_one_configured_package_root() -> None:
    first = get_logger("mapper")
    second = get_logger("decoder")

    assert first.name == "sheetmap.mapper"
    root = logging.getLogger("sheetmap")
    assert first.parent is root and second.parent is root
    assert root.propagate is False
    assert len(root.handlers) == 2


def test_log_file_follows_the_environment_override() -> None:
    get_logger("mapper")
    root = logging.getLogger("sheetmap")
    (file_handler,) = [
        h for h in root.handlers if isinstance(h, logging.handlers.RotatingFileHandler)
    ]

    assert log_dir() == Path(os.environ[LOG_DIR_ENV])
    assert Path(file_handler.baseFilename) == log_dir() / LOG_FILE
    assert file_handler.level == logging.DEBUG
