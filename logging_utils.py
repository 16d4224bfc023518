"""Lightweight logging helper for console-tagged messages.

Every module logs through ``log_event`` so output stays ``[LEVEL][Tag] message``
with optional ``key=value`` fields. ``log_throttled`` is for the frame loop and
the pulse timers, which would otherwise repeat the same line 60 times a second.
"""
from __future__ import annotations

import logging
import time
from typing import Any

_logger = logging.getLogger("neonspin")
if not _logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("[%(levelname)s][%(tag)s] %(message)s")
    handler.setFormatter(formatter)
    _logger.addHandler(handler)
    _logger.setLevel(logging.INFO)


class _TagAdapter(logging.LoggerAdapter):
    def process(self, msg: Any, kwargs: dict[str, Any]):
        tag = kwargs.pop("tag", "Spin")
        kwargs.setdefault("extra", {})["tag"] = tag
        return msg, kwargs


_logger_adapter = _TagAdapter(_logger, {})

# key -> monotonic time of the last emitted line
_last_emitted: dict[str, float] = {}


def log_event(level: str, tag: str, message: str, **fields: Any) -> None:
    """Log a message with level+tag, appending key=value fields when provided."""
    if fields:
        extras = " ".join(f"{k}={v}" for k, v in fields.items())
        message = f"{message} | {extras}"
    level_val = getattr(logging, level.upper(), logging.INFO)
    _logger_adapter.log(level_val, message, tag=tag)


def log_throttled(key: str, interval_s: float, level: str, tag: str, message: str, **fields: Any) -> bool:
    """Log at most once per ``interval_s`` for a given key. Returns True when emitted."""
    now = time.monotonic()
    last = _last_emitted.get(key)
    if last is not None and now - last < interval_s:
        return False
    _last_emitted[key] = now
    log_event(level, tag, message, **fields)
    return True


def reset_throttle() -> None:
    """Forget throttle history (used between sessions and in tests)."""
    _last_emitted.clear()


def set_log_level(level: str) -> None:
    """Set global log level (DEBUG/INFO/WARNING/ERROR)."""
    level_name = (level or "INFO").upper()
    level_val = getattr(logging, level_name, logging.INFO)
    _logger.setLevel(level_val)


def get_log_level() -> str:
    """Return current global log level name."""
    return logging.getLevelName(_logger.level)
