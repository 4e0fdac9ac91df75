"""
Structured Logging Configuration for X-Ray

Provides:
- JSON-formatted logs for production, readable logs for development
- Request ID tracking (ContextVar) attached to every log line
- Correlation ids for internal errors, reusing the request ID when present
"""

import json
import logging
import os
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Context variable to store request ID across threads/async calls
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Attributes every LogRecord carries; anything else came in through extra={...}
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS
    }


class JSONFormatter(logging.Formatter):
    """
    Outputs one JSON object per line:
    timestamp, level, logger, message, request_id, context (extra fields), exception
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = _extra_fields(record)
        if extra:
            log_data["context"] = extra

        return json.dumps(log_data, ensure_ascii=True, default=str)


class StandardFormatter(logging.Formatter):
    """
    Human-readable formatter for development.

    Format: [TIMESTAMP] LEVEL - logger - message (request_id)
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        base = f"[{timestamp}] {record.levelname:8s} - {record.name} - {record.getMessage()}"

        request_id = request_id_var.get()
        if request_id:
            base += f" (request_id={request_id})"

        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)

        return base


def setup_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: Optional[str] = None
) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, use JSON formatter (production), else standard formatter
        log_file: Optional file path to also write logs to

    Environment variables LOG_LEVEL, JSON_LOGS and LOG_FILE override the arguments.
    """
    level = os.getenv("LOG_LEVEL", level).upper()
    json_logs = os.getenv("JSON_LOGS", "true" if json_logs else "false").lower() == "true"
    log_file = os.getenv("LOG_FILE", log_file)

    numeric_level = getattr(logging, level, logging.INFO)
    formatter = JSONFormatter() if json_logs else StandardFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={
            "level": level,
            "json_logs": json_logs,
            "log_file": log_file or "none"
        }
    )


def set_request_id(request_id: str) -> None:
    """Set request ID for the current context. Subsequent logs include it."""
    request_id_var.set(request_id)


def clear_request_id() -> None:
    """Clear request ID so it does not leak into the next request."""
    request_id_var.set(None)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def new_correlation_id() -> str:
    """Request ID when inside a request, otherwise a fresh UUID."""
    return get_request_id() or str(uuid.uuid4())
