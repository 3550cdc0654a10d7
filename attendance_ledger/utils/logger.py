"""Logging setup for the attendance ledger service.

Every module obtains its logger through :func:`setup_logger`, so all
package loggers share one format and can be re-levelled together from
the ``logging.level`` config value.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PACKAGE = "attendance_ledger"


def setup_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Create and configure a logger with structured formatting.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.
        level: Logging level (default: ``logging.INFO``).

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(level)
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger


def set_log_level(level: str | int) -> int:
    """Apply a level to every logger created for this package.

    Args:
        level: Level name such as ``"DEBUG"`` or a numeric level.

    Returns:
        The numeric level applied.

    Raises:
        ValueError: If ``level`` is not a known level name.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved

    for name, logger in logging.root.manager.loggerDict.items():
        if name.startswith(PACKAGE) and isinstance(logger, logging.Logger):
            logger.setLevel(level)
    return level
