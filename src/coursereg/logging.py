"""Logging configuration for the coursereg service.

Application loggers (``coursereg.*``) and the HTTP server's loggers
(``uvicorn.*``) write to the same rotating file, so a request line and the
registry events it caused end up next to each other.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from coursereg.config import Settings

LOG_FILE = "coursereg.log"

# Log format
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

APP_LOGGER_NAME = "coursereg"
SERVER_LOGGER_NAME = "uvicorn"


def setup_logging(settings: Settings | None = None, console: bool = True) -> logging.Logger:
    """Set up service logging from the resolved settings.

    Args:
        settings: Service settings. ``log_dir``, ``log_level``, ``log_max_bytes``
                  and ``log_backup_count`` are used. Defaults to ``Settings()``.
        console: Whether to also log to stderr. Defaults to True.

    Returns:
        The coursereg application logger.
    """
    if settings is None:
        settings = Settings()

    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILE
    level = getattr(logging, settings.log_level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            log_path,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    for name in (APP_LOGGER_NAME, SERVER_LOGGER_NAME):
        _install(logging.getLogger(name), handlers, level)

    logger = logging.getLogger(APP_LOGGER_NAME)
    logger.info("coursereg logging initialized (level=%s, file=%s)", settings.log_level, log_path)
    return logger


def _install(logger: logging.Logger, handlers: list[logging.Handler], level: int) -> None:
    """Replace a logger's handlers, closing the previous ones."""
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(level)
    for handler in handlers:
        logger.addHandler(handler)
