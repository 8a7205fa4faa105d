"""
Central logging configuration for icscodec.

The library itself only emits records through module loggers; applications
embedding it call ``configure_logging`` once to choose verbosity.
"""

import logging
import os
from typing import Optional

LOGGER_NAME = "icscodec"

_MODULE_LOGGERS = [
    "icscodec.recurrence",
    "icscodec.assembler",
    "icscodec.validator",
    "icscodec.writer",
]


def configure_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure log levels for icscodec modules.

    Args:
        debug_mode: Whether to enable debug logging for icscodec modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        ICSCODEC_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        ICSCODEC_LOG_LEVEL: Override the package log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("ICSCODEC_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("ICSCODEC_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        level = getattr(logging, env_log_level)

    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.setLevel(level)

    # Only add a handler if the application has not configured logging itself
    root_logger = logging.getLogger()
    if not root_logger.handlers and not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s")
        )
        package_logger.addHandler(handler)

    for name in _MODULE_LOGGERS:
        logging.getLogger(name).setLevel(level)

    package_logger.debug("icscodec logging configured at %s", logging.getLevelName(level))


def reset_logging() -> None:
    """Remove handlers installed by configure_logging and restore default levels."""
    package_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
    for name in _MODULE_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)
