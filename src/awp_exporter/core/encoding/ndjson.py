"""NDJSON encoder for log entries."""

import json

from awp_exporter.core.models import LogEntry


def encode_log_entry(entry: LogEntry) -> str:
    """Encode a log entry as a single line of JSON.

    Args:
        entry: The LogEntry to encode.

    Returns:
        JSON object string without a trailing newline. Attribute values
        that are not JSON-serializable are rendered with str().
    """
    obj = {
        "timestamp": entry.timestamp,
        "level": entry.level,
        "message": entry.message,
        "attributes": entry.attributes,
    }
    return json.dumps(obj, default=str)
