"""Python logging adapter for structured JSON output.

Each record is converted to a LogEntry and written as one JSON line, so the
exporter's logs can be shipped as-is by a container log collector.
"""

import logging
import sys
import traceback
from typing import TextIO

from awp_exporter.core.encoding.ndjson import encode_log_entry
from awp_exporter.core.models import LogEntry

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)


def record_to_entry(record: logging.LogRecord) -> LogEntry:
    """Convert a LogRecord into a LogEntry.

    The logger name is stored under ``logger``. Scalar values passed with
    ``extra=`` become attributes; exception info is flattened into
    ``exc_type``, ``exc_message`` and ``exc_traceback``.

    Args:
        record: The log record to convert.

    Returns:
        LogEntry carrying the record's timestamp, level and message.
    """
    attributes: dict[str, str | int | float | bool] = {"logger": record.name}

    # Add any extra attributes passed via logging call
    for key, value in record.__dict__.items():
        if key not in _STANDARD_LOGRECORD_ATTRS and isinstance(
            value, (str, int, float, bool)
        ):
            attributes[key] = value

    if record.exc_info:
        exc_type, exc_value, exc_tb = record.exc_info
        if exc_type is not None:
            attributes["exc_type"] = exc_type.__name__
        if exc_value is not None:
            attributes["exc_message"] = str(exc_value)
        if exc_tb is not None:
            attributes["exc_traceback"] = "".join(
                traceback.format_exception(exc_type, exc_value, exc_tb)
            )

    return LogEntry(
        timestamp=record.created,
        level=record.levelname,
        message=record.getMessage(),
        attributes=attributes,
    )


class JsonLogFormatter(logging.Formatter):
    """Logging formatter that renders records as single-line JSON.

    Example:
        ```python
        handler = logging.StreamHandler()
        handler.setFormatter(JsonLogFormatter())
        logging.getLogger().addHandler(handler)
        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        return encode_log_entry(record_to_entry(record))


def configure_logging(verbose: bool = False, stream: TextIO | None = None) -> None:
    """Install a JSON handler on the root logger.

    Replaces any handlers already on the root logger. Uvicorn's own loggers
    propagate to it, so server messages share the same format.

    Args:
        verbose: Log at DEBUG instead of INFO.
        stream: Output stream (default: stdout).
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonLogFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
