# mapchat/utils/timers.py
# -*- coding: utf-8 -*-
"""
RealMap AI Chat Server — timing utilities
-----------------------------------------
Lightweight helper for measuring how long a block takes and logging it.
Used around the completion provider call.
"""

from __future__ import annotations

import logging
import time
from contextlib import ContextDecorator
from typing import Optional


class Stopwatch(ContextDecorator):
    """
    Simple stopwatch context manager.

    Example:
        with Stopwatch("completion call", logger):
            gateway.complete(turns)

    This will log something like:
        completion call took 0.937 s

    `elapsed` stays readable after the block exits.
    """

    def __init__(
        self,
        label: str,
        logger: Optional[logging.Logger] = None,
        level: int = logging.INFO,
    ) -> None:
        self.label = label
        self.logger = logger or logging.getLogger(__name__)
        self.level = level
        self.elapsed: float = 0.0
        self._start: float = 0.0

    def __enter__(self) -> "Stopwatch":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> None:  # type: ignore[override]
        self.elapsed = time.perf_counter() - self._start
        suffix = " (failed)" if exc_type is not None else ""
        self.logger.log(self.level, "%s took %.3f s%s", self.label, self.elapsed, suffix)
