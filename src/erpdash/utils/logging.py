"""Logging helpers shared by every erpdash module."""

import logging
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return the module logger for ``name`` (usually ``__name__``)."""
    return logging.getLogger(name)


def configure_logging(level: Optional[Union[str, int]] = None) -> None:
    """
    Configure root logging for CLI runs.

    Args:
        level: Level name ("DEBUG", "INFO", ...) or numeric level. Defaults to WARNING.
    """
    if level is None:
        level = logging.WARNING
    elif isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
