"""Настройка логирования через loguru."""

import sys
from typing import Any, TextIO

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def configure_logging(level: str = "WARNING", sink: TextIO = sys.stderr) -> Any:
    """Replace loguru's default handler with a single console sink."""
    logger.remove()
    logger.add(sink, format=CONSOLE_FORMAT, level=level.upper(),
               colorize=sink.isatty() if hasattr(sink, "isatty") else False)
    return logger
