# -*- coding: utf-8 -*-
"""
RealMap AI Chat Server — Utility toolbox
----------------------------------------
Shared helper functions that are used across the server:

- file_io   : safe text read helper (instruction preamble override)
- logging   : central logging configuration
- timers    : small timing helper for provider latency

Import from here when it makes sense, for a clean public API, e.g.:

    from mapchat.utils import setup_logging, get_logger
"""

from __future__ import annotations

from .file_io import (  # noqa: F401
    read_text_safely,
)

from .logging import (  # noqa: F401
    setup_logging,
    get_logger,
)

from .timers import (  # noqa: F401
    Stopwatch,
)
