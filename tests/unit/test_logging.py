"""
Unit tests for structured logging utilities.
"""

import json
import logging
from io import StringIO

from forgelink.utils.logging import (
    JSONFormatter,
    get_logger,
    log_api_call,
    log_error_with_context,
    mask_token,
)


def capture(logger):
    """Attach a JSON handler to the adapter's logger and return its buffer."""
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger.logger.addHandler(handler)
    logger.logger.setLevel(logging.INFO)
    return stream


def test_json_formatter():
    """Test JSON formatter produces valid JSON output."""
    logger = logging.getLogger("test_json_formatter")
    logger.setLevel(logging.INFO)
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)

    logger.info("Test message", extra={"platform": "gitlab", "project_id": 123, "branch": "main"})

    log_data = json.loads(stream.getvalue())

    assert "timestamp" in log_data
    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "test_json_formatter"
    assert log_data["message"] == "Test message"
    assert log_data["platform"] == "gitlab"
    assert log_data["project_id"] == 123
    assert log_data["context"] == {"branch": "main"}
    assert "source" in log_data


def test_get_logger_with_context():
    """Test getting logger with context."""
    logger = get_logger("test_module", platform="github", run_id="9")

    assert logger.extra["platform"] == "github"
    assert logger.extra["run_id"] == "9"


def test_with_context_merges_fields():
    """Test bound context appears on every record."""
    base = get_logger("test_with_context", platform="gitlab")
    logger = base.with_context(project_id="123", run_id="77")
    stream = capture(logger)

    logger.info("Resolved context")

    log_data = json.loads(stream.getvalue())
    assert log_data["platform"] == "gitlab"
    assert log_data["project_id"] == "123"
    assert log_data["run_id"] == "77"
    assert "project_id" not in base.extra


def test_log_api_call():
    """Test API call logging."""
    logger = get_logger("test_log_api_call")
    stream = capture(logger)

    log_api_call(
        logger,
        service="gitlab",
        endpoint="/projects/123",
        method="GET",
        status_code=200,
        duration_ms=150.456,
    )

    log_data = json.loads(stream.getvalue())
    assert log_data["level"] == "INFO"
    assert log_data["context"]["service"] == "gitlab"
    assert log_data["context"]["status_code"] == 200
    assert log_data["context"]["duration_ms"] == 150.46


def test_log_api_call_with_error():
    """Test API call logging with error."""
    logger = get_logger("test_log_api_call_with_error")
    stream = capture(logger)

    log_api_call(
        logger,
        service="github",
        endpoint="/repos/octo/demo",
        method="GET",
        status_code=502,
        error="Bad Gateway",
    )

    log_data = json.loads(stream.getvalue())
    assert log_data["level"] == "WARNING"
    assert log_data["context"]["error"] == "Bad Gateway"


def test_log_error_with_context():
    """Test error logging with exception info."""
    logger = get_logger("test_log_error_with_context")
    stream = capture(logger)

    try:
        raise ValueError("Test error")
    except ValueError as e:
        log_error_with_context(logger, "Operation failed", e, phase="prepare")

    log_data = json.loads(stream.getvalue())
    assert log_data["level"] == "ERROR"
    assert log_data["context"]["phase"] == "prepare"
    assert log_data["context"]["error_type"] == "ValueError"
    assert log_data["error"]["type"] == "ValueError"
    assert log_data["error"]["message"] == "Test error"
    assert "stack_trace" in log_data["error"]


def test_mask_token():
    assert mask_token("glpat-abcdefghijkl") == "********ijkl"
    assert mask_token("short") == "*****"
    assert mask_token("") == "<empty>"
    assert mask_token(None) == "<empty>"
