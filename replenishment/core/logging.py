"""Structured JSON logging with planning-run correlation.

Provides JSON-formatted logs with run ID tracking, so every line emitted
while one reorder plan is computed can be grouped together.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
import uuid
from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from logging.handlers import RotatingFileHandler
from typing import Any

from replenishment.core.config import get_settings

# Planning run correlation (cross-cutting run_id)
_run_id: ContextVar[str] = ContextVar("run_id", default="")

_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "message",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
    }
)


def set_run_id(value: str | None = None) -> str:
    """Set current run_id (or generate new). Returns active id."""
    rid = value or str(uuid.uuid4())
    _run_id.set(rid)
    return rid


def get_run_id() -> str:
    """Get current run_id for contextual logging."""
    return _run_id.get()


def _to_jsonable(v: Any) -> Any:
    """Recursively convert extras into JSON-compatible values."""
    if isinstance(v, Enum):
        return v.value
    if v is None or isinstance(v, (str, int, float, bool)):
        return v
    if isinstance(v, (datetime, date)):
        return v.isoformat()
    if is_dataclass(v) and not isinstance(v, type):
        v = asdict(v)
    if isinstance(v, Mapping):
        return {str(k): _to_jsonable(val) for k, val in v.items()}
    if isinstance(v, (list, tuple, set, frozenset)):
        return [_to_jsonable(i) for i in v]
    return str(v)


class JsonFormatter(logging.Formatter):
    """JSON log formatter, one object per line."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        payload: dict[str, Any] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int((record.created - int(record.created)) * 1000):03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
            "run_id": get_run_id() or None,
        }

        extras = {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}
        if extras:
            payload["extra"] = _to_jsonable(extras)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def _ensure_dir(path: str) -> None:
    """Ensure directory exists for log file."""
    d = os.path.dirname(path)
    if d and not os.path.exists(d):
        os.makedirs(d, exist_ok=True)


def setup_logging(
    level: str | int = "INFO",
    to_stdout: bool = True,
    file_path: str | None = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """Initialize structured JSON logging.

    Args:
        level: Log level (INFO, DEBUG, WARNING, ERROR)
        to_stdout: Enable stdout logging
        file_path: Path to JSON log file (None to disable file logging)
        max_bytes: Max log file size before rotation (default: 5MB)
        backup_count: Number of backup files to keep (default: 5)

    """
    root = logging.getLogger()
    root.setLevel(logging.getLevelName(level.upper()) if isinstance(level, str) else level)

    # Remove old handlers to avoid duplicates
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = JsonFormatter()

    if to_stdout:
        sh = logging.StreamHandler(sys.stdout)
        sh.setFormatter(fmt)
        root.addHandler(sh)

    if file_path:
        _ensure_dir(file_path)
        fh = RotatingFileHandler(
            file_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        fh.setFormatter(fmt)
        root.addHandler(fh)


def setup_logging_from_settings() -> None:
    """Initialize logging from application settings."""
    settings = get_settings()
    setup_logging(level=settings.log_level, file_path=settings.log_file_path)


__all__ = [
    "setup_logging",
    "setup_logging_from_settings",
    "set_run_id",
    "get_run_id",
    "JsonFormatter",
]
