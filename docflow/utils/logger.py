# docflow/utils/logger.py
# ============================================================
# Structured Logging Setup
# ============================================================
# Provides a pre-configured logger with Rich console output for
# human-readable batch logs. Colors, timestamps, and module
# names are included automatically.
#
# Usage:
#   from docflow.utils.logger import get_logger
#   logger = get_logger(__name__)
#   logger.info("Processing [1/10]: invoice.pdf")
# ============================================================

import logging

from rich.logging import RichHandler

from config.settings import settings

# Every logger handed out by get_logger, so set_log_level can re-level them
_LOGGERS: dict[str, logging.Logger] = {}


def _parse_level(level: str) -> int:
    return getattr(logging, str(level).upper(), logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """
    Create and return a pre-configured logger with Rich formatting.

    Args:
        name: Logger name, typically __name__ from the calling module.
              This appears in log output to identify the source.

    Returns:
        A logging.Logger instance with Rich console handler attached.

    Example:
        >>> logger = get_logger("docflow.tools.invoker")
        >>> logger.info("doc-to-text is available")
        [10:30:45] INFO     docflow.tools.invoker — doc-to-text is available
    """
    logger = logging.getLogger(name)

    # Avoid adding duplicate handlers if get_logger is called multiple times
    if not logger.handlers:
        level = _parse_level(settings.log_level)
        logger.setLevel(level)

        rich_handler = RichHandler(
            level=level,
            rich_tracebacks=True,
            show_time=True,
            show_path=False,            # Module name is enough, skip file paths
            markup=True,                # Allow Rich markup in log messages
        )

        # Format: name and message only, Rich adds time and level
        formatter = logging.Formatter("%(name)s — %(message)s")
        rich_handler.setFormatter(formatter)

        logger.addHandler(rich_handler)

        # Prevent log propagation to root logger (avoids duplicate messages)
        logger.propagate = False

    _LOGGERS[name] = logger
    return logger


def set_log_level(level: str) -> None:
    """
    Re-level every logger created through get_logger.

    Loggers are created at import time, before the CLI knows whether
    --verbose was passed, so the level is applied after the fact.
    """
    numeric = _parse_level(level)
    for logger in _LOGGERS.values():
        logger.setLevel(numeric)
        for handler in logger.handlers:
            handler.setLevel(numeric)
