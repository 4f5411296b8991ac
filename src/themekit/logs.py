"""Logging configuration for themekit."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from themekit.config.models import LoggingSettings

LOGGER_NAME = "themekit"
LOG_FILENAME = "themekit.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(
    settings: LoggingSettings,
    log_dir: Path,
    *,
    level_override: Optional[str] = None,
) -> logging.Logger:
    """Attach a rotating file handler to the package logger.

    Calling this more than once reuses the existing handler and only
    adjusts the level.

    Args:
        settings: Logging section of the configuration.
        log_dir: Directory receiving `themekit.log`.
        level_override: Level name that replaces `settings.level`, such as
            `DEBUG` for `--verbose`.

    Returns:
        logging.Logger: The configured `themekit` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    level_name = (level_override or settings.level).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING
    logger.setLevel(level)

    log_path = (log_dir / LOG_FILENAME).resolve()
    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler) and Path(handler.baseFilename) == log_path:
            handler.setLevel(level)
            return logger

    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_path,
        maxBytes=max(settings.max_size_mb, 1) * 1024 * 1024,
        backupCount=settings.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger


def reset_logging() -> None:
    """Detach and close every handler added by `configure_logging`."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RotatingFileHandler):
            logger.removeHandler(handler)
            handler.close()


__all__ = ["configure_logging", "reset_logging", "LOG_FILENAME"]
