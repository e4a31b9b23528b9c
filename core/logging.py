"""Structured logging utilities."""
from __future__ import annotations

import logging
import os
import sys
import uuid
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

import orjson

from core.settings import parse_bool

_TRACE_KEY = "trace_id"
_RESERVED = set(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Render log records as JSON, including any ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                payload[key] = value
        return orjson.dumps(payload, default=str).decode()


def setup_logging(log_path: Optional[Path] = None, *, level: Optional[str] = None) -> None:
    """Install handlers on the root logger using ``LOG_LEVEL`` and ``LOG_JSON``.

    When ``log_path`` is given a rotating JSON file handler is added as well.
    """

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    stream = logging.StreamHandler(sys.stderr)
    if parse_bool(os.getenv("LOG_JSON"), default=False):
        stream.setFormatter(JsonFormatter())
    else:
        stream.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(stream)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
        handler.setFormatter(JsonFormatter())
        root.addHandler(handler)


def with_trace(extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Attach a fresh trace identifier to structured log metadata."""

    payload: Dict[str, Any] = {_TRACE_KEY: str(uuid.uuid4())}
    if extra:
        payload.update(extra)
    return payload


__all__ = ["JsonFormatter", "setup_logging", "with_trace"]
