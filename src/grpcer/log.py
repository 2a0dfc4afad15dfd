"""Logging helpers for the grpcer plugin.

protoc reads the plugin response from stdout, so everything logged here goes
to stderr.
"""

from __future__ import annotations

import logging
import os
import sys

_LOGGER_NAME = "grpcer"
_ENV_LOG_LEVEL = "GRPCER_LOGGING"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the grpcer hierarchy."""
    if name is None:
        return logging.getLogger(_LOGGER_NAME)
    if name == _LOGGER_NAME or name.startswith(_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")


def _level_from_environment(default: int) -> int:
    value = os.environ.get(_ENV_LOG_LEVEL, "").strip().upper()
    if not value:
        return default
    level = logging.getLevelName(value)
    return level if isinstance(level, int) else default


def configure_logging(*, verbose: bool = False) -> logging.Logger:
    """Attach a single stderr handler to the grpcer logger.

    ``GRPCER_LOGGING`` (e.g. ``DEBUG``) overrides the level unless *verbose*
    is set.
    """
    level = logging.DEBUG if verbose else _level_from_environment(logging.WARNING)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated calls do not duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[protoc-gen-grpcer] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)
    return logger


__all__ = ["configure_logging", "get_logger"]
