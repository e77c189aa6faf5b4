"""
Logging setup.

The library only calls loguru's logger; applications call
configure_logging() once at startup to choose sinks and level.
"""

from __future__ import annotations

import sys

from loguru import logger

LOG_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {name}:{function} - {message}"


def configure_logging(level: str | None = None, log_file: str | None = None) -> list[int]:
    """
    Replace loguru's default sink with a stderr sink and an optional file sink.

    Missing arguments come from settings (log_level / log_file).

    Returns:
        Handler ids of the installed sinks
    """
    if level is None or log_file is None:
        from config import get_settings

        settings = get_settings()
        level = level or settings.log_level
        log_file = log_file if log_file is not None else settings.log_file

    logger.remove()
    handler_ids = [logger.add(sys.stderr, level=level, format=LOG_FORMAT)]

    if log_file:
        handler_ids.append(
            logger.add(
                log_file,
                level=level,
                rotation="10 MB",
                retention=5,
                encoding="utf-8",
            )
        )

    logger.debug(f"Logging configured at {level}" + (f", file={log_file}" if log_file else ""))
    return handler_ids
