"""
Structured logging helpers built on the standard logging module.

Messages carry ``key=value`` metadata appended to the text so that they
stay readable with any handler:

    Hydration aggregated: documents=3 windows=2 duration_ms=1.42
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator


def format_log_message(message: str, **metadata: Any) -> str:
    """Appends ``k=v`` pairs (in the given order) to a message."""
    if not metadata:
        return message
    pairs = " ".join(f"{key}={_format_value(value)}" for key, value in metadata.items())
    return f"{message}: {pairs}"


def _format_value(value: Any) -> str:
    if isinstance(value, (list, tuple, set, frozenset)):
        return "[" + ", ".join(str(v) for v in value) + "]"
    if isinstance(value, str) and " " in value:
        return repr(value)
    return str(value)


@contextmanager
def log_timed(logger: logging.Logger, level: int, message: str, **metadata: Any) -> Iterator[Dict[str, Any]]:
    """
    Logs an operation with its duration.

    The yielded dict may be filled with extra metadata inside the block.
    On failure the message is logged at ERROR with the error class and
    text, and the exception is re-raised.

    Example:
        with log_timed(logger, logging.DEBUG, "Template rendered", template=name) as meta:
            html = engine.render(ast, context)
            meta["length"] = len(html)
    """
    extra: Dict[str, Any] = {}
    start = time.perf_counter()
    try:
        yield extra
    except Exception as e:
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.error(format_log_message(
            f"{message} failed",
            **{**metadata, **extra},
            duration_ms=duration_ms,
            error=str(e).splitlines()[0] if str(e) else "",
            error_class=type(e).__name__,
        ))
        raise
    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    if logger.isEnabledFor(level):
        logger.log(level, format_log_message(message, **{**metadata, **extra}, duration_ms=duration_ms))


__all__ = ["format_log_message", "log_timed"]
