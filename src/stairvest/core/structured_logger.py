"""
StairVest - Structured Logging

JSON log lines for the vesting engine. Every module logs through
``logging.getLogger(__name__)`` and attaches structured fields with
``extra={"event": "...", ...}``; this module renders those fields.
"""

import hashlib
import json
import logging
import os
import sys
import threading
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional, TextIO

from . import config

# Correlates the log lines of one wallet operation
correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


class JSONFormatter(logging.Formatter):
    """
    Formats records as one JSON object per line.

    Fields passed through ``extra`` are copied to the top level.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        corr_id = correlation_id.get()
        if corr_id:
            log_entry["correlation_id"] = corr_id

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_entry, default=str)


def configure_logging(
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Attach a single handler to the ``stairvest`` logger.

    Defaults come from ``STAIRVEST_LOG_LEVEL`` and ``STAIRVEST_LOG_JSON``.
    Calling it again replaces the handler instead of stacking another.
    """
    level_name = (level or config.LOG_LEVEL).upper()
    use_json = config.LOG_JSON if json_output is None else json_output

    logger = logging.getLogger("stairvest")
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_stairvest_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler._stairvest_handler = True  # type: ignore[attr-defined]
    if use_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)-8s %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S")
        )
    logger.addHandler(handler)
    return logger


class LogContext:
    """
    Binds a correlation ID to every log line emitted inside the block.

    A context opened while another is active keeps the outer ID, so a
    re-entrant call logs under the operation that triggered it.

    Usage:
        with LogContext("release"):
            logger.info("Vested amount released", extra={...})
    """

    def __init__(self, operation: str = "", custom_id: Optional[str] = None):
        self.operation = operation
        self.correlation_id = custom_id or correlation_id.get() or self._generate_correlation_id()

    def _generate_correlation_id(self) -> str:
        timestamp = str(time.time()).encode()
        thread_id = str(threading.get_ident()).encode()
        digest = hashlib.sha256(timestamp + thread_id + os.urandom(8)).hexdigest()[:16]
        return f"{self.operation}-{digest}" if self.operation else digest

    def __enter__(self) -> "LogContext":
        self.token = correlation_id.set(self.correlation_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        correlation_id.reset(self.token)
