"""
Logging setup for the effects editor
"""

import logging
import sys

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = "INFO") -> logging.Handler:
    """
    Send log records to stdout

    Args:
        level: Logging level name

    Returns:
        The installed handler
    """
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root_logger = logging.getLogger()
    # Calling twice must not duplicate output
    for existing in list(root_logger.handlers):
        if getattr(existing, '_pyweb_effects', False):
            root_logger.removeHandler(existing)
    handler._pyweb_effects = True
    root_logger.setLevel(numeric_level)
    root_logger.addHandler(handler)
    return handler
