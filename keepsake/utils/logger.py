"""Logging configuration using Loguru."""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[module]}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[module]}:{line} - {message}"


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = True,
    log_dir: str = "logs",
    file_rotation: str = "10 MB",
    file_retention: str = "7 days",
    compression: str = "zip",
    serialize: bool = True,
) -> Path | None:
    """
    Replace Loguru's sinks with a stderr sink and an optional rotating file.

    Accepts the fields of LoggingConfig as keyword arguments.

    Returns:
        Log directory when file logging is enabled, else None
    """
    logger.remove()
    # Records from the unbound logger still render the module column
    logger.configure(extra={"module": "keepsake"})

    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if not log_to_file:
        return None

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_path / "keepsake_{time:YYYY-MM-DD}.log",
        level=level,
        format=FILE_FORMAT,
        rotation=file_rotation,
        retention=file_retention,
        compression=compression,
        serialize=serialize,
        enqueue=True,
    )
    return log_path


def get_logger(name: str):
    """Logger bound to a module name."""
    return logger.bind(module=name)
