"""Logging helpers for the branch sync job."""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional, TextIO

from pythonjsonlogger import jsonlogger
from opentelemetry import trace

# Fields that must never reach a log line even if passed through ``extra``
REDACTED_FIELDS = frozenset({"token", "authorization", "private_key", "jwt"})


class OTelJSONFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that injects OpenTelemetry trace/span identifiers.
    """

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        span = trace.get_current_span()
        if span != trace.INVALID_SPAN:
            ctx = span.get_span_context()
            if ctx.is_valid:
                log_record["trace_id"] = trace.format_trace_id(ctx.trace_id)
                log_record["span_id"] = trace.format_span_id(ctx.span_id)

        for key in list(log_record):
            if key.lower() in REDACTED_FIELDS:
                log_record[key] = "***"

        # Normalize level casing
        if "level" in log_record:
            log_record["level"] = log_record["level"].upper()
        else:
            log_record["level"] = record.levelname


def setup_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    """
    Configure root logger to emit JSON logs with OTel correlation.
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    formatter = OTelJSONFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={"asctime": "timestamp", "levelname": "level"},
    )
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    # Remove existing handlers to avoid duplicate logs when reloading
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)

    root_logger.addHandler(handler)

    # Silence noisy libraries
    logging.getLogger("httpx").setLevel("WARNING")
    logging.getLogger("httpcore").setLevel("WARNING")
