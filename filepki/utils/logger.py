"""Logging configuration."""

import logging
from pathlib import Path
from typing import Optional

from filepki.models.config import AppConfig, LoggingSettings

LOGGER_NAME = "filepki"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"


def log_level(settings: LoggingSettings) -> int:
    """Numeric level for a configured level name; unknown names fall back to INFO."""
    level = logging.getLevelName(settings.level.upper())
    return level if isinstance(level, int) else logging.INFO


def log_file_path(config: AppConfig) -> Optional[Path]:
    """Log file location; a relative file name lives under paths.logs."""
    if not config.logging.file:
        return None
    return Path(config.paths.logs) / config.logging.file


def _with_format(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def setup_logger(config: Optional[AppConfig] = None) -> logging.Logger:
    """
    Configure the filepki logger.

    Handlers are installed once; later calls return the logger unchanged.

    Args:
        config: Application configuration, defaults if None

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    config = config or AppConfig.default()
    level = log_level(config.logging)
    logger.setLevel(level)

    logger.addHandler(_with_format(logging.StreamHandler(), level, CONSOLE_FORMAT))

    log_file = log_file_path(config)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_with_format(logging.FileHandler(log_file), level, config.logging.format))

    return logger
