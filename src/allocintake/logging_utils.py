"""Logging setup for the allocintake package.

Library modules log through ``logging.getLogger(__name__)``; applications call
:func:`setup_logging` once to attach console and file handlers to the package
logger.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .config import LoggingConfig

LOGGER_NAME = "allocintake"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _safe_add_file_handler(logger: logging.Logger, path: Path, formatter: logging.Formatter) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(path, encoding="utf-8")
    except OSError as exc:
        logger.warning("Failed to attach file handler %s (%s); logging to console only", path, exc)
        return
    fh.setFormatter(formatter)
    logger.addHandler(fh)


def setup_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Configure the package logger with a console handler and optional file handler.

    Handlers are reset on every call so repeated initialisation does not
    duplicate output.
    """

    config = config or LoggingConfig()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, config.level))
    logger.handlers = []

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    sh = logging.StreamHandler()
    sh.setFormatter(formatter)
    logger.addHandler(sh)

    if config.logs_dir:
        log_path = Path(config.logs_dir).expanduser() / config.file_name
        _safe_add_file_handler(logger, log_path, formatter)
        logger.debug("Logging initialised. Logs will be written to %s", log_path)
    return logger
