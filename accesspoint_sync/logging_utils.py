# accesspoint_sync/logging_utils.py

"""
Logging for the sync engine.

Every module logger is a child of the ``accesspoint_sync`` logger, which owns the
only handler. Records go to stderr; stdout is reserved for the CLI's JSON
envelopes.
"""

import logging
import os
import sys
from typing import Optional

ROOT_LOGGER = "accesspoint_sync"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s"


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Set the package log level and attach the stderr handler once."""
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(_resolve_level(level))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)
    return root


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    if not logging.getLogger(ROOT_LOGGER).handlers:
        configure_logging()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
