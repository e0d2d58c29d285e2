"""
Logging configuration using loguru.

The console stays quiet (warnings and up by default) while the optional
log file keeps the store's open/upgrade/close history at ``file_level``.
Library code only ever does ``from loguru import logger``; sinks are the
application's choice.
"""

import sys
from pathlib import Path

from loguru import logger

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function} | {message}"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    file_level: str = "INFO",
    fmt: str = "<level>[{level.name}]</level> {message}",
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Configure loguru with console and optional file output.

    Args:
        level: Minimum console log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Path to log file; parent directories are created. If None,
            only logs to stderr.
        file_level: Minimum level written to ``log_file``. Never less verbose
            than ``level``.
        fmt: Loguru format string for the console sink.
        rotation: Log file rotation size.
        retention: How long to keep rotated logs.
    """
    logger.remove()
    logger.add(sys.stderr, level=level, format=fmt)

    if log_file:
        Path(log_file).expanduser().parent.mkdir(parents=True, exist_ok=True)
        if logger.level(level).no < logger.level(file_level).no:
            file_level = level
        logger.add(
            str(Path(log_file).expanduser()),
            level=file_level,
            format=FILE_FORMAT,
            rotation=rotation,
            retention=retention,
            encoding="utf-8",
        )
