"""Loguru sink configuration for the gateway process."""

from __future__ import annotations

import logging
import sys

from loguru import logger

from .config import Settings

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


class InterceptHandler(logging.Handler):
    """Forward standard-library log records (uvicorn, googleapiclient) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(settings: Settings) -> None:
    """
    Replace loguru's default sink with the gateway's sinks.

    Production logs go to files only; other environments also log to stderr.
    An empty ``LOG_DIR`` disables the file sinks and keeps stderr.
    """
    level = settings.effective_log_level
    logger.remove()

    if not settings.is_production or settings.log_dir is None:
        logger.add(sys.stderr, level=level, colorize=True)

    if settings.log_dir is not None:
        logger.add(settings.log_dir / "error.log", level="ERROR", format=FILE_FORMAT)
        logger.add(settings.log_dir / "combined.log", level=level, format=FILE_FORMAT)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False
