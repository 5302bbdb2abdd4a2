"""Logging setup for the application entry point."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "ARITH_QUIZ_LOG_LEVEL"

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_level: str | None = None) -> None:
    """Configure the root logger with a console handler.

    Safe to call multiple times: existing handlers are cleared first.  When
    ``log_level`` is not given it is read from ``ARITH_QUIZ_LOG_LEVEL``
    (default INFO).
    """
    if log_level is None:
        log_level = os.environ.get(LOG_LEVEL_ENV, "INFO")
    level = getattr(logging, str(log_level).strip().upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
    root.addHandler(console)
