"""
Structured JSON logging for storage operations.

Provides a single-line JSON formatter with trace IDs for correlating a
caller's requests with the storage calls they trigger, plus a context
manager that instruments every adapter operation.
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone

# Context variables for trace correlation
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)
provider_var: ContextVar[str | None] = ContextVar("provider", default=None)

# Extra record attributes copied into the JSON payload
EXTRA_FIELDS = (
    "event",
    "operation",
    "provider",
    "key",
    "size_bytes",
    "items_returned",
    "duration_ms",
    "error_type",
    "not_found",
)


# -----------------------------------------------------------------------------
# JSON Formatter
# -----------------------------------------------------------------------------


class JSONFormatter(logging.Formatter):
    """
    Format log records as single-line JSON.

    Output format:
    {"timestamp": "...", "level": "INFO", "message": "...", "trace_id": "...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        trace_id = trace_id_var.get()
        if trace_id:
            log_data["trace_id"] = trace_id

        provider = provider_var.get()
        if provider:
            log_data["provider"] = provider

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data, default=str)


def configure_logging(json_format: bool = True, level: str = "INFO") -> None:
    """
    Configure root logging for services and the CLI.

    Args:
        json_format: If True, use JSON format. If False, use human-readable format.
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    root_logger.addHandler(handler)

    # Vendor SDKs log every HTTP exchange at INFO
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)


def set_trace_id(trace_id: str | None) -> None:
    """Attach a trace ID to every log line emitted by the current task."""
    trace_id_var.set(trace_id)


# -----------------------------------------------------------------------------
# Context Managers
# -----------------------------------------------------------------------------


@contextmanager
def log_storage_operation(operation: str, key: str | None, provider: str):
    """
    Context manager for storage operation instrumentation.

    Logs operation completion or failure with timing. The caller may
    report payload size or result counts through the yielded dict.

    Usage:
        with log_storage_operation("download", "reports/q1.pdf", "s3") as metrics:
            data = await fetch()
            metrics["size_bytes"] = len(data)
    """
    start_time = time.time()
    logger = logging.getLogger("beycloud.storage")
    metrics: dict = {}
    token = provider_var.set(provider)

    try:
        yield metrics

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(
            f"{provider} {operation} completed: {key or '*'} ({duration_ms}ms)",
            extra={
                "event": f"storage_{operation}_complete",
                "operation": operation,
                "key": key,
                "duration_ms": duration_ms,
                **metrics,
            },
        )
    except Exception as e:
        duration_ms = int((time.time() - start_time) * 1000)
        logger.warning(
            f"{provider} {operation} failed: {key or '*'} - {e}",
            extra={
                "event": f"storage_{operation}_failed",
                "operation": operation,
                "key": key,
                "duration_ms": duration_ms,
                "error_type": type(e).__name__,
                "not_found": getattr(e, "not_found", False),
            },
        )
        raise
    finally:
        provider_var.reset(token)
