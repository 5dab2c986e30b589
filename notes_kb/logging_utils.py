from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Dict

_CONTEXT_FIELDS = ("source_file", "topic", "line")


class _PlainFormatter(logging.Formatter):
    """Human-friendly single-line formatter (to stderr)."""

    default_fmt = "%(levelname)s %(name)s - %(message)s"
    verbose_fmt = "%(asctime)s %(levelname)s %(name)s %(filename)s:%(lineno)d - %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"

    def __init__(self, debug: bool = False) -> None:
        fmt = self.verbose_fmt if debug else self.default_fmt
        super().__init__(fmt=fmt, datefmt=self.datefmt)


class _JsonFormatter(logging.Formatter):
    """JSON lines formatter (each record is one JSON object)."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        # Optional context (source_file, topic, line) passed via `extra=`
        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _coerce_level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        upper = level.upper()
        if upper in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}:
            return getattr(logging, upper)
        if upper.isdigit():
            return int(upper)
    return logging.INFO


def setup_logging(level: str | int | None = None, json_logs: bool = False) -> None:
    """
    Configure root logging once for the process.

    Args:
        level: Logging level (e.g., "DEBUG", "INFO"). Falls back to $LOG_LEVEL, then INFO.
        json_logs: If True, emit JSON lines to stderr; otherwise plain text.
    """
    final_level = _coerce_level(level or os.getenv("LOG_LEVEL") or logging.INFO)

    root = logging.getLogger()
    root.setLevel(final_level)

    # Replace handlers so repeated calls (tests, REPL) don't duplicate output
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(stream=sys.stderr)
    if json_logs:
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(_PlainFormatter(debug=(final_level <= logging.DEBUG)))
    root.addHandler(handler)
