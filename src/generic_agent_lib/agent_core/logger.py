"""Logging utilities for the generic agent library."""

import logging
import sys
from typing import TextIO

_LOGGER_NAME = "generic_agent_lib"


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance below the library namespace.

    Module names that already live inside the package (``__name__`` of a library module)
    are used as-is, anything else is nested under the library root logger.

    Args:
        name: Optional sub-logger name. If None, returns the root library logger.

    Returns:
        The requested logger.
    """
    if not name:
        return logging.getLogger(_LOGGER_NAME)
    if name == _LOGGER_NAME or name.startswith(f"{_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")


def setup_logging(
    level: int = logging.INFO,
    format_str: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream: TextIO | None = None,
) -> None:
    """Attach a stream handler to the library's root logger.

    Meant to be called by applications and example scripts, never by the library itself.
    Calling it twice does not add a second handler.

    Args:
        level: Logging level.
        format_str: Log format string.
        stream: Target stream, defaults to stdout.
    """
    logger = logging.getLogger(_LOGGER_NAME)

    if any(not isinstance(h, logging.NullHandler) for h in logger.handlers):
        return

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(format_str))
    logger.addHandler(handler)
    logger.setLevel(level)


logging.getLogger(_LOGGER_NAME).addHandler(logging.NullHandler())
