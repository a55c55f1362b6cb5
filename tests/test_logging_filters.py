"""Tests for sensitive data filtering and limiter-key correlation in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

from rate_limiter.adapters.events.logging_notifier import LoggingNotifier
from rate_limiter.core.config import LogSettings
from rate_limiter.core.logging import (
    JsonFormatter,
    LimiterKeyFilter,
    SensitiveDataFilter,
    bind_limiter_key,
    clear_limiter_key,
    configure_logging,
    get_limiter_key,
)


def _capture(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(LimiterKeyFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_credentials():
    """Ensure API keys and client addresses never reach the output."""

    logger, stream = _capture("test_redaction")

    logger.info(
        "rate_limit.exceeded",
        extra={
            "api_key": "sk-secret-123",
            "client_ip": "10.0.0.7",
            "retry_after_s": 60,
        },
    )

    output = stream.getvalue()

    assert "sk-secret-123" not in output
    assert "10.0.0.7" not in output
    assert "[REDACTED]" in output
    assert "retry_after_s" in output


def test_sensitive_filter_redacts_nested_dicts():
    logger, stream = _capture("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {"x-api-key": "secret-key", "user-agent": "pytest"},
            "limits": {"capacity": 5},
        },
    )

    output = stream.getvalue()

    assert "secret-key" not in output
    assert "pytest" in output
    assert '"capacity": 5' in output


def test_limiter_key_is_attached_from_context():
    logger, stream = _capture("test_limiter_key")

    bind_limiter_key("abc123:GET /a")
    try:
        assert get_limiter_key() == "abc123:GET /a"
        logger.info("limiter.hit", extra={"hits": 1})
    finally:
        clear_limiter_key()

    record = json.loads(stream.getvalue())
    assert record["limiter_key"] == "abc123:GET /a"
    assert record["message"] == "limiter.hit"
    assert record["level"] == "info"
    assert get_limiter_key() is None


def test_logging_notifier_emits_structured_records():
    logger, stream = _capture("test_notifier")
    notifier = LoggingNotifier(logger=logger)

    notifier.notify("limiter.timeout", {"duration": 1, "expires_at": 1060})

    record = json.loads(stream.getvalue())
    assert record["message"] == "limiter.timeout"
    assert record["expires_at"] == 1060


def test_configure_logging_installs_json_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging(LogSettings(level="warning", format="json", output="stdout"))

        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_configure_logging_plain_file_output(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    log_file = tmp_path / "logs" / "limiter.log"
    try:
        configure_logging(
            LogSettings(format="plain", output="file", file_path=str(log_file), max_bytes=1024)
        )
        logging.getLogger("rate_limiter.test").info("hello")
        root.handlers[0].flush()

        assert log_file.exists()
        assert "hello" in log_file.read_text()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_json_formatter_escapes_non_ascii_and_stamps_utc():
    logger, stream = _capture("test_json_defaults")

    logger.info("limiter.hit", extra={"route": "GET /café"})

    line = stream.getvalue()
    assert "\\u00e9" in line

    record = json.loads(line)
    assert record["route"] == "GET /café"
    assert record["timestamp"].endswith("+00:00")
