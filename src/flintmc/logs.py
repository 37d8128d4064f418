"""Logging configuration.

All modules log through the shared loguru `logger`. This module only
replaces the default sink once per process with a compact format.
"""

import sys
from typing import TYPE_CHECKING, TextIO

from loguru import logger

if TYPE_CHECKING:
    from flintmc.settings import LogLevel

LOG_FORMAT = '<dim>{time:HH:mm:ss.SSS}</dim> | <level>{level: <7}</level> | {message}'


def configure_logging(level: 'LogLevel' = 'INFO', sink: TextIO | None = None) -> int:
    """Replace every configured sink with a single stream sink.

    Args:
        level: Minimal level of records to emit.
        sink: Output stream, standard error by default.

    Returns:
        Identifier of the added sink.
    """
    logger.remove()

    return logger.add(
        sink or sys.stderr,
        level=level,
        format=LOG_FORMAT,
        colorize=None,
        backtrace=False,
        diagnose=False,
    )
