import logging
import os
import sys
from typing import Protocol

from loki_logger_handler.loki_logger_handler import LokiLoggerHandler

from s3upload.services.trace_id_service import trace_id_context


class LoggingConfig(Protocol):
    log_level: str
    loki_enabled: bool
    loki_url: str
    environment: str


class TraceIDFilter(logging.Filter):
    """Logging filter that ensures trace_id is always present in log records.

    Reads trace_id from contextvar if not already in the record.
    If no trace_id in contextvar, defaults to 'no-trace-id'.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "trace_id"):
            record.trace_id = trace_id_context.get()
        return True


def setup_loki_logging(config: LoggingConfig, service_name: str) -> logging.Logger:
    """
    Configure logging with optional Loki handler and trace ID support.

    Args:
        config: Client configuration
        service_name: Name of the service (e.g., "upload", "checksum")

    Returns:
        Configured logger instance
    """
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if config.loki_enabled and config.loki_url:
        loki_handler = LokiLoggerHandler(
            url=config.loki_url,
            labels={
                "service": service_name,
                "environment": config.environment,
                "host": os.getenv("HOSTNAME", "unknown"),
            },
            timeout=10,
            compressed=True,
        )
        handlers.append(loki_handler)

    trace_id_filter = TraceIDFilter()
    for handler in handlers:
        handler.addFilter(trace_id_filter)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - [%(trace_id)s] - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )

    return logging.getLogger(service_name)
