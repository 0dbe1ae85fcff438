"""Console logging for the command-line entry point.

Library modules only create named loggers under ``photo_provenance``;
handlers are installed here, once, by the CLI.
"""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "photo_provenance"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(log_level: str = "INFO") -> logging.Logger:
    """Attach a single stderr handler to the package logger.

    Calling it again replaces the previous handler instead of stacking.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR).

    Returns:
        The package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
