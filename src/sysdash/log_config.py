"""
Logging configuration for sysdash.

Log records go to the Textual devtools console so they never draw over the
terminal UI, and optionally to a file with a more detailed format.
"""

import logging
from pathlib import Path

from textual.logging import TextualHandler

from sysdash.config import FILE_LOG_FORMAT, LOG_DATE_FORMAT, LOG_FORMAT


def setup_logger(
    name: str = "sysdash",
    level: int = logging.INFO,
    log_file: Path | None = None,
) -> logging.Logger:
    """
    Configure and return a logger with consistent formatting.

    Args:
        name: Logger name. Module loggers under this name inherit its handlers.
        level: Logging level (default: INFO).
        log_file: Optional file path for log output.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    console_handler = TextualHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        logger.addHandler(file_handler)
        # The file keeps debug detail; the console handler still filters at `level`
        logger.setLevel(min(level, logging.DEBUG))

    logger.propagate = False

    return logger
