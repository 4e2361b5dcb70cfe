"""
Process-wide logging configuration for the command-line entry points.
Library modules only create loggers; they never configure handlers.
"""

from __future__ import annotations
import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_CONFIGURED = False


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging once.

    Args:
        level: log level name ("INFO", "DEBUG", ...). Falls back to the
               LOG_LEVEL environment variable, then INFO.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
    _CONFIGURED = True
