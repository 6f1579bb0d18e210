"""
Logging setup for the command line.

Library modules only call ``from loguru import logger``; sinks are installed here,
once, by whoever owns the process.
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}"


def configure_logging(level: str = "INFO", log_file: Optional[str | Path] = None) -> None:
    """Replace loguru's default sink with a console sink and an optional rotating file sink."""
    logger.remove()

    # No stderr when frozen as a windowed app
    if sys.stderr is not None:
        logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level.upper(), colorize=True)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(path),
            format=FILE_FORMAT,
            level="DEBUG",
            rotation="1 day",
            retention="7 days",
            compression="zip",
            encoding="utf-8",
        )
