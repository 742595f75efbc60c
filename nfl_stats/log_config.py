# nfl_stats/log_config.py
"""
Process-wide logging setup.

Modules log through logging.getLogger(__name__); this configures the root
logger once at app start.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Transport libraries log every connection at INFO/DEBUG.
NOISY_LOGGERS = ("urllib3", "requests", "werkzeug")


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger with a stdout handler.

    Args:
        level: DEBUG, INFO, WARNING, ... When None, LOG_LEVEL is read from the
            environment, defaulting to INFO. Unknown names fall back to INFO.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")

    logging.basicConfig(
        level=getattr(logging, level.strip().upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
