"""
Logging setup shared by every module in the package.

Modules obtain a logger with ``get_logger(__name__)``; applications call
``setup_logging()`` once to attach a handler to the package logger.
"""

import logging
from typing import Optional

from ..config import config

PACKAGE_LOGGER = "parallel_kmeans"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: Optional[str] = None, fmt: str = DEFAULT_FORMAT
) -> logging.Logger:
    """
    Configure the package logger.

    Calling this more than once only updates the level; a second handler is
    never attached.

    Args:
        level: Level name such as "DEBUG". Defaults to ``LOG_LEVEL`` from config.
        fmt: Log record format string.

    Returns:
        The configured package logger.
    """
    level_name = (level or config.logging.level).upper()
    numeric = logging.getLevelName(level_name)
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level_name}")

    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    pkg_logger.setLevel(numeric)
    if not any(getattr(h, "_parallel_kmeans", False) for h in pkg_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        handler._parallel_kmeans = True  # type: ignore[attr-defined]
        pkg_logger.addHandler(handler)
    return pkg_logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger for *name* (normally the calling module's ``__name__``)."""
    return logging.getLogger(name)
