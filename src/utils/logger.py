"""
Logger setup shared by the chapter services
"""

import logging
import sys

from config.config import LOG_LEVEL

LOGGER_NAME = "chapters"


def setup_logger(name: str = LOGGER_NAME, level: str = None) -> logging.Logger:
    """
    Configure and return the application logger

    Handlers are attached only once so repeated calls (one per module)
    do not duplicate log lines.

    Args:
        name: Logger name (defaults to the shared "chapters" logger)
        level: Optional level override, otherwise LOG_LEVEL from config

    Returns:
        Configured logging.Logger
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or LOG_LEVEL).upper())

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)
        logger.propagate = False

    return logger
