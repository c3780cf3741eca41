from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# extras copied from the record when present
_EXTRA_KEYS = ("tool", "method", "path", "status", "elapsed_ms", "kind", "config")

_LEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


def _json_formatter(record: logging.LogRecord) -> str:
    payload: Dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "level": record.levelname.lower(),
        "logger": record.name,
        "msg": record.getMessage(),
    }
    for k in _EXTRA_KEYS:
        if k in record.__dict__:
            payload[k] = record.__dict__[k]
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return _json_formatter(record)


def configure_logging(level: str = "info") -> None:
    """
    JSON logging to stderr with a configurable level (LOG_LEVEL).
    stdout is reserved for MCP frames, so nothing may log there.
    """
    lvl = _LEVELS.get((level or "info").strip().lower(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(lvl)

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonLogFormatter())
    root.addHandler(handler)

    # httpx logs every request at INFO; keep it quiet unless debugging
    noisy = logging.DEBUG if lvl == logging.DEBUG else logging.WARNING
    logging.getLogger("httpx").setLevel(noisy)
    logging.getLogger("httpcore").setLevel(noisy)
