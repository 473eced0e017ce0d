"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from code_commenter.core.logging import (
    JsonFormatter,
    SensitiveDataFilter,
    clear_request_id,
    set_request_id,
)


@pytest.fixture
def capture() -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_api_keys(capture):
    """Ensure SensitiveDataFilter redacts API key fields."""
    logger, stream = capture

    logger.info(
        "test_event",
        extra={
            "api_key": "sk-secret-123",
            "x-api-key": "another-secret",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()
    assert "sk-secret-123" not in output
    assert "another-secret" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_code_and_model_output(capture):
    """Submitted snippets, prompts and completions never reach the log."""
    logger, stream = capture

    logger.info(
        "comment_event",
        extra={
            "code": "password = 'hunter2'",
            "prompt": "You are a senior engineer...",
            "commentedCode": "# leaks\npassword = 'hunter2'",
            "code_chars": 20,
        },
    )

    output = stream.getvalue()
    assert "hunter2" not in output
    assert "senior engineer" not in output
    assert json.loads(output)["code_chars"] == 20


def test_sensitive_filter_allows_safe_fields(capture):
    """Verify safe fields pass through unmodified."""
    logger, stream = capture

    logger.info(
        "safe_event",
        extra={
            "route": "/api/comment",
            "status": 200,
            "duration_ms": 150.5,
        },
    )

    output = stream.getvalue()
    assert "/api/comment" in output
    assert "200" in output
    assert "[REDACTED]" not in output


def test_sensitive_filter_redacts_nested_dicts(capture):
    """Ensure nested sensitive fields are redacted."""
    logger, stream = capture

    logger.info(
        "nested_event",
        extra={
            "headers": {"authorization": "Bearer secret-key", "user-agent": "pytest"},
            "payload": [{"code": "x = 1", "personality": "mentor"}],
        },
    )

    data = json.loads(stream.getvalue())
    assert data["headers"]["authorization"] == "[REDACTED]"
    assert data["headers"]["user-agent"] == "pytest"
    assert data["payload"][0]["code"] == "[REDACTED]"
    assert data["payload"][0]["personality"] == "mentor"


def test_formatter_attaches_context_request_id(capture):
    logger, stream = capture
    set_request_id("req-123")
    try:
        logger.info("with_context")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "req-123"
