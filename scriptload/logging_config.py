"""Logging for scriptload: one namespace, env-driven level and format, per-client context.

Records from the client loop carry ``client_id`` and, where known, ``script``
(pass them with ``extra=client_extra(...)``). Both formatters render them, so
interleaved output from many concurrent clients stays attributable.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any

LOG_LEVEL_ENV = "SCRIPTLOAD_LOG_LEVEL"
LOG_FORMAT_ENV = "SCRIPTLOAD_LOG_FORMAT"  # "json" | "text" (default)

ROOT_LOGGER = "scriptload"
# Record attributes set through ``extra`` by client-side log calls
CONTEXT_FIELDS = ("client_id", "script")

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def client_extra(client_id: int, script: str | None = None) -> dict[str, Any]:
    """``extra`` mapping for a log call made on behalf of one client."""
    extra: dict[str, Any] = {"client_id": client_id}
    if script is not None:
        extra["script"] = script
    return extra


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Client context fields present on ``record``, in CONTEXT_FIELDS order."""
    return {f: getattr(record, f) for f in CONTEXT_FIELDS if hasattr(record, f)}


def get_logger(name: str) -> logging.Logger:
    """Return ``scriptload.<name>`` (or the root for ``"scriptload"``), configuring the root once."""
    _configure_root()
    return logging.getLogger(ROOT_LOGGER if name == ROOT_LOGGER else f"{ROOT_LOGGER}.{name}")


def _configure_root() -> None:
    root = logging.getLogger(ROOT_LOGGER)
    if root.handlers:
        return
    level_name = (os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    handler = logging.StreamHandler(sys.stderr)
    if (os.environ.get(LOG_FORMAT_ENV) or "text").lower() == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(_TextFormatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT))
    root.addHandler(handler)


class _TextFormatter(logging.Formatter):
    """Plain text with client context appended, e.g. ``... [client_id=3 script='transfer']``."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        ctx = record_context(record)
        if not ctx:
            return line
        return line + " [" + " ".join(f"{k}={v!r}" for k, v in ctx.items()) + "]"


class _JsonFormatter(logging.Formatter):
    """One JSON object per record with client context as top-level keys, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        obj: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt or "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        obj.update(record_context(record))
        if record.exc_info:
            obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(obj, ensure_ascii=False, default=str)
