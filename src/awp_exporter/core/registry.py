"""Dynamic registry of per-station sensor gauges.

Every numeric field a station reports becomes one gauge family named
``awp_<field>`` with a single ``station`` label. Families are created the
first time a field is seen and live for the rest of the process.
"""

import logging
import re
import threading

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Gauge,
    generate_latest,
)

logger = logging.getLogger(__name__)

METRIC_PREFIX = "awp"
STATION_LABEL = "station"

# Classic exposition name grammar. Anything else is escaped on output.
_METRIC_NAME_RE = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")

# Identity and metadata fields that never become metrics. Matched
# case-insensitively; not every device sends all of them.
IGNORED_FIELDS = frozenset(
    {
        "PASSKEY",
        "MAC",
        "STATIONTYPE",
        "SOFTWARETYPE",
        "DATEUTC",
        "TZ",
    }
)


def is_ignored(field_name: str) -> bool:
    """Return True if a field carries metadata rather than a reading."""
    return field_name.upper() in IGNORED_FIELDS


def metric_name(field_name: str, prefix: str = METRIC_PREFIX) -> str:
    """Build the exposition name for a field, preserving its case."""
    return f"{prefix}_{field_name}"


class StationGauge:
    """Handle for one field's gauge family, keyed by station."""

    def __init__(self, field_name: str, gauge: Gauge) -> None:
        self.field_name = field_name
        self._gauge = gauge

    def set(self, station: str, value: float) -> None:
        """Set the current value for this field at the given station.

        Thread-safe; concurrent writes to the same station are last-write-wins.
        """
        self._gauge.labels(**{STATION_LABEL: station}).set(value)


class StationGaugeRegistry:
    """Registry mapping sensor field names to their gauge families.

    Owns a private CollectorRegistry so that ``/metrics`` exposes only the
    sensor gauges, without the process and platform collectors that the
    default registry carries.

    Args:
        collector_registry: Exposition registry to register gauges with.
            A fresh one is created when omitted.
        prefix: Metric name prefix (default: "awp").
    """

    def __init__(
        self,
        collector_registry: CollectorRegistry | None = None,
        prefix: str = METRIC_PREFIX,
    ) -> None:
        self.collector_registry = collector_registry or CollectorRegistry()
        self.prefix = prefix
        self._gauges: dict[str, StationGauge] = {}
        self._lock = threading.Lock()

    def get_or_create(self, field_name: str) -> StationGauge:
        """Return the gauge handle for a field, creating it on first use.

        Lookup, construction and registration happen under one lock, so a
        field is registered exactly once even when many requests report it
        for the first time at the same moment.

        Args:
            field_name: Sensor field name as received (case preserved).

        Returns:
            The StationGauge for this field.

        Raises:
            ValueError: If the metric name is not a valid Prometheus name.
                Nothing is registered in that case.
        """
        with self._lock:
            handle = self._gauges.get(field_name)
            if handle is not None:
                return handle

            name = metric_name(field_name, self.prefix)
            if not _METRIC_NAME_RE.fullmatch(name):
                raise ValueError(f"Invalid metric name: {name!r}")
            gauge = Gauge(
                name,
                f"AWP sensor value for {field_name}",
                labelnames=[STATION_LABEL],
                registry=None,
            )
            self.collector_registry.register(gauge)
            handle = StationGauge(field_name, gauge)
            self._gauges[field_name] = handle

        logger.debug("Created gauge", extra={"metric": name})
        return handle

    def get(self, field_name: str) -> StationGauge | None:
        """Return the handle for a field, or None if it was never reported."""
        with self._lock:
            return self._gauges.get(field_name)

    def fields(self) -> list[str]:
        """Return the registered field names in creation order."""
        with self._lock:
            return list(self._gauges)

    def value(self, field_name: str, station: str) -> float | None:
        """Return the current value for a (field, station) pair, if any."""
        name = metric_name(field_name, self.prefix)
        return self.collector_registry.get_sample_value(
            name, {STATION_LABEL: station}
        )

    def render(self) -> tuple[bytes, str]:
        """Serialize every registered gauge in Prometheus text format.

        Returns:
            Tuple of (body, content_type).
        """
        return generate_latest(self.collector_registry), CONTENT_TYPE_LATEST

    def __contains__(self, field_name: object) -> bool:
        with self._lock:
            return field_name in self._gauges

    def __len__(self) -> int:
        with self._lock:
            return len(self._gauges)
