"""Tests for rejection logging."""

import logging
from unittest.mock import Mock

from tiered_ratelimit.services.violation_logger import Violation, ViolationLogger


def make_violation(**overrides) -> Violation:
    fields = dict(
        tier="authenticated",
        endpoint_type="search",
        key="auth_rate_limit:search:42",
        limit=20,
        user_id="42",
        ip="198.51.100.1",
        user_agent="pytest",
        path="/v1/search/advanced",
        method="POST",
    )
    fields.update(overrides)
    return Violation(**fields)


def test_logs_warning_with_context(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="tiered_ratelimit.services.violation_logger"):
        ViolationLogger().log(make_violation())

    assert len(caplog.records) == 1
    record = caplog.records[0]
    assert record.levelno == logging.WARNING
    assert record.getMessage() == "rate_limit.exceeded"
    assert record.tier == "authenticated"
    assert record.user_id == "42"
    assert record.ip == "198.51.100.1"
    assert record.endpoint_type == "search"
    assert record.key == "auth_rate_limit:search:42"
    assert record.limit == 20
    assert record.method == "POST"


def test_disabled_logger_is_silent(caplog) -> None:
    with caplog.at_level(logging.DEBUG):
        ViolationLogger(enabled=False).log(make_violation())

    assert not [r for r in caplog.records if r.getMessage() == "rate_limit.exceeded"]


def test_custom_sink_receives_event() -> None:
    sink = Mock(spec=logging.Logger)

    ViolationLogger(sink=sink).log(make_violation(user_id=None, tier="public"))

    sink.warning.assert_called_once()
    args, kwargs = sink.warning.call_args
    assert args == ("rate_limit.exceeded",)
    assert kwargs["extra"]["tier"] == "public"
    assert kwargs["extra"]["user_id"] is None


def test_failing_sink_does_not_raise() -> None:
    sink = Mock(spec=logging.Logger)
    sink.warning.side_effect = RuntimeError("handler exploded")

    ViolationLogger(sink=sink).log(make_violation())

    sink.warning.assert_called_once()
