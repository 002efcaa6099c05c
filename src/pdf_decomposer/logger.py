"""Structured JSON logger for the decomposition engine.

Each record is one JSON object per line:
{"time":"2026-10-19T14:06:20.829529-05:00","level":"INFO","source":{"function":"split_pdf","file":"splitter.py","line":43},"msg":"pdf split complete","source_file":"batch_3.pdf","run_id":"9f1c2a7b4e01","artifacts":3}

Per-run fields (``source_file``, ``run_id``) live in a ContextVar, so
decompositions running in parallel threads each log their own values.
"""

import json
import logging
import os
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

LOG_LEVEL_ENV = "PDF_DECOMPOSER_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"

# Fields attached to every line logged in the current thread/task
_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def _json_default(value: Any) -> Any:
    # PDF payloads are never logged whole
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    return str(value)


class StructuredFormatter(logging.Formatter):
    """Render a LogRecord as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.now(timezone.utc).astimezone().isoformat(),
            "level": record.levelname,
            "source": {
                "function": record.funcName,
                "file": record.pathname,
                "line": record.lineno,
            },
            "msg": record.getMessage(),
        }

        ctx_fields = _log_context.get()
        if ctx_fields:
            entry.update(ctx_fields)

        # Call-site fields win over context fields of the same name
        if hasattr(record, "extra_fields"):
            entry.update(record.extra_fields)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=_json_default)


class StructuredLogger:
    """Logger that accepts keyword fields and merges in the current run context."""

    def __init__(self, name: str = "pdf_decomposer", level: str | None = None):
        """Create the logger and attach a stdout JSON handler.

        Args:
            name: Name passed to logging.getLogger.
            level: Level name such as "DEBUG". If not provided, uses the
                PDF_DECOMPOSER_LOG_LEVEL env var, then INFO.
        """
        self._logger = logging.getLogger(name)
        level_name = (level or os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)).upper()
        self._logger.setLevel(getattr(logging, level_name, logging.INFO))

        self._logger.handlers.clear()
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        self._logger.addHandler(handler)
        self._logger.propagate = False

    def _log(
        self,
        level: int,
        msg: str,
        stacklevel: int = 3,
        exc_info: bool = False,
        **fields: Any,
    ) -> None:
        """Emit one record; stacklevel points source at the caller, not this module."""
        extra = {"extra_fields": fields} if fields else {}
        self._logger.log(level, msg, stacklevel=stacklevel, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, **fields: Any) -> None:
        """Log a debug message with optional fields."""
        self._log(logging.DEBUG, msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        """Log an info message with optional fields."""
        self._log(logging.INFO, msg, **fields)

    def warn(self, msg: str, **fields: Any) -> None:
        """Log a warning message with optional fields."""
        self._log(logging.WARNING, msg, **fields)

    def error(self, msg: str, **fields: Any) -> None:
        """Log an error message with optional fields."""
        self._log(logging.ERROR, msg, **fields)

    def exception(self, msg: str, **fields: Any) -> None:
        """Log an error with the active exception's traceback under "exception"."""
        self._log(logging.ERROR, msg, exc_info=True, **fields)


def set_context(**fields: Any) -> None:
    """Attach fields to every subsequent log line in the current context.

    Example:
        set_context(source_file="batch_3.pdf", run_id="9f1c")
        logger.info("boundaries detected")  # includes source_file and run_id
    """
    current = _log_context.get()
    _log_context.set({**current, **fields})


def clear_context() -> None:
    """Clear all context fields."""
    _log_context.set({})


def get_context() -> dict[str, Any]:
    """Get a copy of the current context fields."""
    return _log_context.get().copy()


@contextmanager
def run_context(source_file: str, run_id: str | None = None) -> Iterator[str]:
    """Tag log lines with one decomposition run's identity.

    Sets ``source_file`` and ``run_id`` for the duration of the block and
    restores whatever context was active before, so nested or batched runs
    do not clobber a caller's own fields.

    Yields:
        The run id in effect.
    """
    run_id = run_id or uuid.uuid4().hex[:12]
    token = _log_context.set({**_log_context.get(), "source_file": source_file, "run_id": run_id})
    try:
        yield run_id
    finally:
        _log_context.reset(token)


logger = StructuredLogger("pdf_decomposer")
