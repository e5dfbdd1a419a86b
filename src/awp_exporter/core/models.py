"""Core domain models for weather-station reports."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Observation:
    """A decoded weather-station report.

    Attributes:
        station: Station identifier taken from the request path.
        fields: Field name to raw values, in order of first appearance.
            Only the first value of a repeated field is meaningful.
    """

    station: str
    fields: dict[str, list[str]] = field(default_factory=dict)

    def first_values(self) -> dict[str, str]:
        """Return each field mapped to its first raw value."""
        return {name: values[0] for name, values in self.fields.items() if values}


@dataclass(frozen=True)
class LogEntry:
    """A structured log entry.

    Attributes:
        timestamp: Unix timestamp in seconds.
        level: Log level (e.g., INFO, ERROR, DEBUG).
        message: The log message.
        attributes: Additional structured fields.
    """

    timestamp: float
    level: str
    message: str
    attributes: dict[str, str | int | float | bool] = field(default_factory=dict)
