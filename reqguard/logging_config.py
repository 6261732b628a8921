"""
Logging levels used by reqguard.

reqguard only emits records through module loggers
(logging.getLogger(__name__)); handlers and formatting belong to the
hosting application.

Levels:
    INFO: Validator construction and validation failures
    DEBUG: Per-segment validation progress
    TRACE: Request mutations and context lookups
"""

from __future__ import annotations

import logging

# Custom TRACE level for very verbose diagnostics
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


def _trace(self: logging.Logger, message: object, *args: object, **kw: object) -> None:
    """Log a message at TRACE level (5)."""
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kw)  # type: ignore[arg-type]


# Add trace method to Logger class
logging.Logger.trace = _trace  # type: ignore[attr-defined]
