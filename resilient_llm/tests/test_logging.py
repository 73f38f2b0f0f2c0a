"""Tests for logging configuration."""

import json
import logging

import pytest

from resilient_llm.logging_config import (
    JSONFormatter,
    SensitiveDataFilter,
    TextFormatter,
    get_request_id,
    request_id_var,
    set_request_id,
    setup_logging,
)

from .conftest import TEST_API_KEY


def make_record(msg, *args, level=logging.INFO):
    return logging.LogRecord("resilient_llm.test", level, __file__, 10, msg, args, None)


@pytest.fixture
def clean_request_id():
    token = request_id_var.set(None)
    yield
    request_id_var.reset(token)


class TestRequestId:
    """Tests for request id tracking."""

    def test_generated_id(self, clean_request_id):
        assert get_request_id() is None

        rid = set_request_id()

        assert len(rid) == 8
        assert get_request_id() == rid

    def test_explicit_id(self, clean_request_id):
        assert set_request_id("req-42") == "req-42"
        assert get_request_id() == "req-42"


class TestSensitiveDataFilter:
    """Tests for credential redaction."""

    def test_bearer_token(self):
        record = make_record(f"Authorization: Bearer {TEST_API_KEY}")

        SensitiveDataFilter().filter(record)

        assert TEST_API_KEY not in record.getMessage()
        assert "Bearer [REDACTED]" in record.getMessage()

    def test_openrouter_key_in_args(self):
        record = make_record("key=%s", TEST_API_KEY)

        SensitiveDataFilter().filter(record)

        assert TEST_API_KEY not in record.getMessage()
        assert "[REDACTED]" in record.getMessage()

    def test_plain_message_untouched(self):
        record = make_record("Trying strategy 1/3: Primary (openai/gpt-4o)")

        SensitiveDataFilter().filter(record)

        assert record.getMessage() == "Trying strategy 1/3: Primary (openai/gpt-4o)"


class TestFormatters:
    """Tests for JSON and text formatters."""

    def test_json_formatter(self, clean_request_id):
        set_request_id("abc12345")

        data = json.loads(JSONFormatter().format(make_record("hello %s", "world")))

        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["logger"] == "resilient_llm.test"
        assert data["request_id"] == "abc12345"
        assert "source" not in data

    def test_json_formatter_error_source(self, clean_request_id):
        data = json.loads(JSONFormatter().format(make_record("bad", level=logging.ERROR)))

        assert data["source"]["line"] == 10
        assert "request_id" not in data

    def test_text_formatter(self, clean_request_id):
        set_request_id("abc12345")

        line = TextFormatter(use_colors=False).format(make_record("hello"))

        assert "INFO" in line
        assert "[abc12345] resilient_llm.test: hello" in line


class TestSetupLogging:
    """Tests for root logger configuration."""

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_setup(self):
        root = setup_logging("DEBUG", "json")

        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert any(isinstance(f, SensitiveDataFilter) for f in root.handlers[0].filters)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "client.log"

        root = setup_logging("INFO", "text", log_file=log_file)

        assert len(root.handlers) == 2
        assert log_file.parent.exists()
        root.handlers[1].close()
