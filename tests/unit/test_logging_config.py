import logging
from unittest.mock import Mock
from unittest.mock import patch

import pytest

from s3upload.logging_config import TraceIDFilter
from s3upload.logging_config import setup_loki_logging
from s3upload.services.trace_id_service import trace_id_context


@pytest.fixture
def mock_config():
    config = Mock()
    config.log_level = "INFO"
    config.loki_enabled = False
    config.loki_url = ""
    config.environment = "test"
    return config


def _record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="test.py",
        lineno=10,
        msg="Test message",
        args=(),
        exc_info=None,
    )


def test_trace_id_filter_adds_default_when_missing():
    record = _record()

    assert TraceIDFilter().filter(record) is True
    assert record.trace_id == "no-trace-id"


def test_trace_id_filter_reads_context():
    record = _record()
    token = trace_id_context.set("0011223344556677")
    try:
        TraceIDFilter().filter(record)
    finally:
        trace_id_context.reset(token)

    assert record.trace_id == "0011223344556677"


def test_trace_id_filter_preserves_existing_trace_id():
    record = _record()
    record.trace_id = "a1b2c3d4e5f67890"

    TraceIDFilter().filter(record)

    assert record.trace_id == "a1b2c3d4e5f67890"


def test_trace_id_filter_works_with_extra():
    logger = logging.getLogger("test_trace_filter_extra_logger")
    logger.setLevel(logging.INFO)

    log_records = []

    class RecordCapture(logging.Handler):
        def emit(self, record):
            log_records.append(record)

    capture_handler = RecordCapture()
    capture_handler.addFilter(TraceIDFilter())
    logger.addHandler(capture_handler)

    logger.info("Test message", extra={"trace_id": "a1b2c3d4e5f67890"})
    logger.info("Second message")

    assert [r.trace_id for r in log_records] == ["a1b2c3d4e5f67890", "no-trace-id"]

    logger.handlers.clear()


def test_setup_loki_logging_returns_logger(mock_config):
    logger = setup_loki_logging(mock_config, "test_service")

    assert isinstance(logger, logging.Logger)
    assert logger.name == "test_service"


def test_setup_loki_logging_without_loki(mock_config):
    with patch("s3upload.logging_config.LokiLoggerHandler") as loki_handler:
        setup_loki_logging(mock_config, "test_service")

    loki_handler.assert_not_called()
    assert len(logging.getLogger().handlers) >= 1


def test_setup_loki_logging_with_loki(mock_config):
    mock_config.loki_enabled = True
    mock_config.loki_url = "http://loki.test/loki/api/v1/push"

    with patch("s3upload.logging_config.LokiLoggerHandler") as loki_handler:
        setup_loki_logging(mock_config, "upload")
    root_logger = logging.getLogger()
    if loki_handler.return_value in root_logger.handlers:
        root_logger.removeHandler(loki_handler.return_value)

    loki_handler.assert_called_once()
    kwargs = loki_handler.call_args.kwargs
    assert kwargs["url"] == "http://loki.test/loki/api/v1/push"
    assert kwargs["labels"]["service"] == "upload"
    assert kwargs["labels"]["environment"] == "test"


def test_every_handler_stamps_trace_id(mock_config):
    mock_config.loki_enabled = True
    mock_config.loki_url = "http://loki.test/loki/api/v1/push"
    mock_config.log_level = "debug"

    with patch("s3upload.logging_config.LokiLoggerHandler") as loki_handler, patch(
        "s3upload.logging_config.logging.basicConfig"
    ) as basic_config:
        loki_handler.return_value = logging.NullHandler()
        setup_loki_logging(mock_config, "upload")

    kwargs = basic_config.call_args.kwargs
    assert kwargs["level"] == logging.DEBUG
    assert "[%(trace_id)s]" in kwargs["format"]
    assert len(kwargs["handlers"]) == 2
    for handler in kwargs["handlers"]:
        assert any(isinstance(f, TraceIDFilter) for f in handler.filters)
