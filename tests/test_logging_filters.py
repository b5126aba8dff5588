"""Tests for sensitive data filtering and log context in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from tiered_ratelimit.core.logging import (
    JsonFormatter,
    LogContextFilter,
    SensitiveDataFilter,
    bind_log_context,
    clear_log_context,
    get_log_context,
    get_request_id,
    set_request_id,
)


@pytest.fixture(autouse=True)
def _clean_context():
    clear_log_context()
    yield
    clear_log_context()


def _json_logger(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(LogContextFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_api_keys():
    """Ensure SensitiveDataFilter redacts API key fields."""

    logger, stream = _json_logger("test_redaction")

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


def test_sensitive_filter_redacts_store_credentials():
    logger, stream = _json_logger("test_store_redaction")

    logger.info(
        "rate_limit.store_initialized",
        extra={"backend": "redis", "redis_url": "redis://:hunter2@cache:6379/0"},
    )

    output = stream.getvalue()

    assert "hunter2" not in output
    assert '"backend": "redis"' in output


def test_sensitive_filter_allows_rate_limit_fields():
    """Violation fields pass through unmodified."""

    logger, stream = _json_logger("test_safe_fields")

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "tier": "public",
            "ip": "203.0.113.7",
            "key": "public_rate_limit:auth:203.0.113.7:abcd1234",
            "limit": 5,
        },
    )

    data = json.loads(stream.getvalue())

    assert data["message"] == "rate_limit.exceeded"
    assert data["level"] == "warning"
    assert data["ip"] == "203.0.113.7"
    assert data["limit"] == 5
    assert "[REDACTED]" not in stream.getvalue()


def test_sensitive_filter_redacts_nested_dicts():
    """Ensure nested sensitive fields are redacted."""

    logger, stream = _json_logger("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {"x-api-key": "secret-key", "user-agent": "pytest"},
        },
    )

    output = stream.getvalue()

    assert "secret-key" not in output
    assert "[REDACTED]" in output
    assert "pytest" in output


def test_log_context_fields_are_attached():
    logger, stream = _json_logger("test_context")

    set_request_id("req-123")
    bind_log_context(client_ip="198.51.100.1")
    logger.info("with_context")

    data = json.loads(stream.getvalue())

    assert data["request_id"] == "req-123"
    assert data["client_ip"] == "198.51.100.1"


def test_explicit_extra_wins_over_context():
    logger, stream = _json_logger("test_context_override")

    bind_log_context(client_ip="198.51.100.1")
    logger.info("override", extra={"client_ip": "10.0.0.1"})

    assert json.loads(stream.getvalue())["client_ip"] == "10.0.0.1"


def test_bind_none_removes_field():
    bind_log_context(request_id="abc", client_ip="1.2.3.4")
    bind_log_context(client_ip=None)

    assert get_log_context() == {"request_id": "abc"}
    assert get_request_id() == "abc"

    clear_log_context()
    assert get_request_id() is None


def test_exception_info_is_formatted():
    logger, stream = _json_logger("test_exc")

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logger.exception("failed")

    data = json.loads(stream.getvalue())
    assert "RuntimeError: boom" in data["exc_info"]
