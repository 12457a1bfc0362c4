"""Logging setup shared by the CLI and the preview server."""

import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = "[%(name)s] %(levelname)s %(message)s"

_handler: Optional[logging.Handler] = None


def setup_logging(log_level: str = "INFO", stream: Optional[TextIO] = None) -> logging.Logger:
    """Route ``codesque.*`` loggers to stderr. Safe to call more than once."""
    global _handler
    logger = logging.getLogger("codesque")
    if _handler is not None:
        logger.removeHandler(_handler)

    _handler = logging.StreamHandler(stream or sys.stderr)
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(_handler)
    logger.setLevel(log_level.upper())
    logger.propagate = False
    return logger
