"""Optional process-wide setup a host may call once at startup."""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from typing import Iterator

from mandelplot.util.logging_setup import get_logger

_previous_excepthook = None


def _log_uncaught(exc_type, exc, tb) -> None:
    if not issubclass(exc_type, KeyboardInterrupt):
        get_logger().critical("Uncaught %s: %s", exc_type.__name__, exc, exc_info=(exc_type, exc, tb))
    if _previous_excepthook is not None:
        _previous_excepthook(exc_type, exc, tb)


def set_panic_hook() -> None:
    """
    Route uncaught exceptions through the package logger before the
    interpreter's default handling. Safe to call more than once.
    """
    global _previous_excepthook
    if sys.excepthook is _log_uncaught:
        return
    _previous_excepthook = sys.excepthook
    sys.excepthook = _log_uncaught


def reset_panic_hook() -> None:
    global _previous_excepthook
    if sys.excepthook is _log_uncaught and _previous_excepthook is not None:
        sys.excepthook = _previous_excepthook
    _previous_excepthook = None


@contextmanager
def timer(label: str) -> Iterator[None]:
    logger = get_logger()
    start = time.perf_counter()
    try:
        yield
    finally:
        logger.debug("%s took %.2fms", label, (time.perf_counter() - start) * 1000.0)
