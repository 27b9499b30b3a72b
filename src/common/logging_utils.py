"""Centralized logging helpers.

Keeps logger setup in one place and provides the small helpers used for
structured DEBUG traces: ``extra_context`` for the ``extra=`` payload,
``is_debug_enabled`` to guard expensive traces, ``safe_url`` so credentials and
query strings never reach the logs, and ``Timer`` for request durations.
"""
from __future__ import annotations

import logging
import os
import sys
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

_HANDLER_NAME = "release_redirect_stream"


def configure_logging(level: Optional[str] = None) -> None:
    """Install the console handler on the root logger.

    The level comes from ``level`` when given, otherwise from the
    RELEASE_REDIRECT_LOG_LEVEL environment variable, defaulting to INFO.
    Calling this more than once does not stack handlers.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    level_value = getattr(logging, level_name, None)
    if not isinstance(level_value, int):
        level_value = logging.INFO

    root = logging.getLogger()
    root.setLevel(level_value)

    for handler in root.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    root.addHandler(handler)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from ``logger`` would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build the ``extra=`` mapping for a structured log record.

    Fields set to None are dropped so records only carry what is known.
    """
    return {key: value for key, value in fields.items() if value is not None}


def safe_url(url: str) -> str:
    """Return ``url`` without userinfo, query string or fragment."""
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return "<invalid url>"
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    return urllib.parse.urlunsplit((parts.scheme, netloc, parts.path, "", ""))


class Timer:
    """Context manager measuring elapsed wall time."""

    def __init__(self) -> None:
        self._start: Optional[float] = None
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        """Elapsed milliseconds; still running timers report time so far."""
        if self._start is None:
            return 0.0
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000.0, 3)
