"""
Logging configuration for the command-line tools.

Log records go to stderr so that listing output on stdout stays clean.
"""
import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def setup_logging(level: Optional[str] = None) -> None:
    global _configured
    if _configured:
        return

    level_name = (level or os.getenv("GROCERY_LIST_LOG_LEVEL", "WARNING")).upper()
    log_level = getattr(logging, level_name, logging.WARNING)

    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid duplicate handlers
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    _configured = True
