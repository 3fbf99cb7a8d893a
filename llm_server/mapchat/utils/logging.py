# mapchat/utils/logging.py
# -*- coding: utf-8 -*-
"""
RealMap AI Chat Server — logging utilities
------------------------------------------
One place that decides what the chat server prints.

- mapchat.* loggers follow settings.debug (DEBUG in dev, INFO otherwise).
- Transport chatter is held back: `urllib3` logs every provider request made
  through requests, and `uvicorn.access` logs every /api/chat hit. Both sit at
  WARNING unless debugging; MAPCHAT_NOISY_LOG_LEVEL overrides that.
- When uvicorn (or pytest) has already installed handlers we keep them and
  only adjust levels.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
DATE_FORMAT = "%H:%M:%S"

NOISY_LOGGERS = ("urllib3", "uvicorn.access")
NOISY_LEVEL_ENV = "MAPCHAT_NOISY_LOG_LEVEL"


def _noisy_level(debug: bool) -> Union[int, str]:
    override = os.getenv(NOISY_LEVEL_ENV)
    if override:
        return override.upper()
    return logging.INFO if debug else logging.WARNING


def setup_logging(
    *,
    debug: bool = False,
    level: Optional[int] = None,
) -> None:
    """
    Configure process logging for the chat server.

    `level` wins over `debug` for the root logger. The transport loggers in
    NOISY_LOGGERS are set on every call, so a second call after uvicorn
    has configured logging still quiets them.
    """
    base_level = level if level is not None else (logging.DEBUG if debug else logging.INFO)

    root = logging.getLogger()
    if root.handlers:
        root.setLevel(base_level)
    else:
        logging.basicConfig(level=base_level, format=LOG_FORMAT, datefmt=DATE_FORMAT)

    noisy = _noisy_level(debug)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy)


def get_logger(name: str) -> logging.Logger:
    """logging.getLogger, spelled the way the rest of mapchat imports it."""
    return logging.getLogger(name)
