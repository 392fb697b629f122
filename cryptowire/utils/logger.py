"""
Logging configuration.

Every record carries ``extra["trace_id"]``: the feed engine binds a short hex
id per ``fetch_all`` call so interleaved feed fetches can be told apart, and
everything else logs under ``LoggingConstants.NO_TRACE``.
"""
import logging
import sys
from pathlib import Path
from typing import Optional
from loguru import logger

from cryptowire.utils.constants import LoggingConstants


class InterceptHandler(logging.Handler):
    """Route aiohttp and other stdlib loggers through loguru"""

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def traced(trace_id: str):
    """Logger whose records carry ``trace_id``"""
    return logger.bind(trace_id=trace_id)


def setup_logging(log_level: str = LoggingConstants.DEFAULT_LEVEL,
                  log_file: Optional[str] = LoggingConstants.DEFAULT_FILE):
    """
    Install the console sink, an optional rotating file sink and the stdlib bridge.

    Args:
        log_level: Minimum level for both sinks
        log_file: Path of the rotating log file, None for console only
    """
    logger.remove()
    logger.configure(extra={"trace_id": LoggingConstants.NO_TRACE})

    logger.add(
        sys.stderr,
        level=log_level,
        format=LoggingConstants.CONSOLE_FORMAT,
        colorize=True
    )

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=log_level,
            format=LoggingConstants.FILE_FORMAT,
            rotation=LoggingConstants.ROTATION,
            retention=LoggingConstants.RETENTION
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
