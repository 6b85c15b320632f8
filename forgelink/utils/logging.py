"""
Structured logging utilities with JSON formatting and context injection.

This module provides structured logging capabilities with:
- JSON formatted log output so CI job logs stay machine-readable
- Context injection (platform, project_id, run_id) via LoggerAdapter
- Standardized fields for forge API calls
- Token masking so credentials never reach the log stream
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from logging import LogRecord
from typing import Any, Dict, MutableMapping, Optional

# Fields promoted to the top level of every JSON record
_CONTEXT_FIELDS = ("platform", "project_id", "run_id", "event_type")

_RESERVED_FIELDS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName", *_CONTEXT_FIELDS,
}


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs log records as JSON with standard fields:
    - timestamp: ISO 8601 formatted timestamp
    - level: Log level (INFO, WARNING, ERROR, etc.)
    - logger: Logger name
    - message: Log message
    - platform / project_id / run_id / event_type: run context, when bound
    - context: any other extra fields
    - error: Error details when exception info is attached
    """

    def format(self, record: LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in _CONTEXT_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_FIELDS
        }
        if extra_fields:
            log_data["context"] = extra_fields

        if record.exc_info:
            log_data["error"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "stack_trace": "".join(traceback.format_exception(*record.exc_info)),
            }

        log_data["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }

        return json.dumps(log_data, default=str)


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that injects context fields into all log records.

    Context set on the adapter (e.g. platform and project_id once the run
    context is resolved) is merged into the ``extra`` of every call.
    """

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: MutableMapping[str, Any]) -> tuple[str, MutableMapping[str, Any]]:
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs

    def with_context(self, **context: Any) -> "ContextLoggerAdapter":
        """
        Create a new logger adapter with additional context.

        Args:
            **context: Additional context fields

        Returns:
            New logger adapter with merged context
        """
        new_extra = dict(self.extra)
        new_extra.update(context)
        return ContextLoggerAdapter(self.logger, new_extra)


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for a CI run.

    Logs go to stderr so stdout stays free for ``::set-output`` directives.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    formatter = JSONFormatter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str, **context: Any) -> ContextLoggerAdapter:
    """
    Get a context-aware logger for a module.

    Args:
        name: Logger name (typically __name__)
        **context: Initial context fields (platform, project_id, run_id)

    Returns:
        Context logger adapter
    """
    return ContextLoggerAdapter(logging.getLogger(name), context)


def mask_token(token: Optional[str], visible: int = 4) -> str:
    """Return a token with all but its last ``visible`` characters hidden."""
    if not token:
        return "<empty>"
    if len(token) <= visible * 2:
        return "*" * len(token)
    return f"{'*' * 8}{token[-visible:]}"


def log_api_call(
    logger: logging.LoggerAdapter,
    service: str,
    endpoint: str,
    method: str,
    status_code: Optional[int] = None,
    duration_ms: Optional[float] = None,
    error: Optional[str] = None,
) -> None:
    """
    Log a forge API call with request/response details.

    Args:
        logger: Logger to use
        service: Service name ('gitlab' or 'github')
        endpoint: API endpoint path
        method: HTTP method
        status_code: Response status code (if available)
        duration_ms: Request duration in milliseconds (if available)
        error: Error message (if request failed)
    """
    extra: Dict[str, Any] = {
        "service": service,
        "endpoint": endpoint,
        "method": method,
    }

    if status_code is not None:
        extra["status_code"] = status_code
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)
    if error is not None:
        extra["error"] = error

    if error:
        logger.warning(f"API call failed: {method} {endpoint}", extra=extra)
    else:
        logger.info(f"API call: {method} {endpoint}", extra=extra)


def log_error_with_context(
    logger: logging.LoggerAdapter,
    message: str,
    error: Exception,
    **context: Any,
) -> None:
    """
    Log error with full stack trace and context.

    Args:
        logger: Logger to use
        message: Error message
        error: Exception object
        **context: Additional context fields
    """
    context.setdefault("error_type", type(error).__name__)
    logger.error(message, extra=context, exc_info=error)
