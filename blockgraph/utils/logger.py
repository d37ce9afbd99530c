"""Logging configuration using Loguru."""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = True,
    log_dir: str = "logs",
    file_rotation: str = "10 MB",
    file_retention: str = "7 days",
    compression: str = "zip",
    serialize: bool = True,
) -> None:
    """
    Configure Loguru sinks.

    Console output is colorized plain text; the optional file sink writes one
    JSON object per record so background-task failures keep their structured
    context (operation, block_id, user_id) searchable.
    """
    logger.remove()

    logger.add(
        sys.stderr,
        level=level,
        format=CONSOLE_FORMAT,
        colorize=True,
        serialize=False,
    )

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path / "blockgraph_{time:YYYY-MM-DD}.log",
            level=level,
            format=FILE_FORMAT,
            rotation=file_rotation,
            retention=file_retention,
            compression=compression,
            serialize=serialize,
            enqueue=True,
        )


def get_logger(name: str, **context):
    """
    Get a logger bound to a module name.

    Extra keyword arguments are bound as structured context on every record
    emitted through the returned logger.
    """
    return logger.bind(module=name, **context)
