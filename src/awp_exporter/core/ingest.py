"""Report ingestion: decode, mirror, and update the gauge registry."""

import logging
from dataclasses import dataclass, field

from awp_exporter.core.decoder import decode_report_target
from awp_exporter.core.ports import MirrorPort
from awp_exporter.core.registry import StationGaugeRegistry, is_ignored

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Outcome of ingesting one report.

    Attributes:
        station: Station identifier from the request path.
        recorded: Fields whose value was set on a gauge.
        ignored: Metadata fields excluded from the registry.
        skipped: Fields whose value was not numeric or whose name was rejected.
        errors: Non-fatal decode errors.
    """

    station: str
    recorded: list[str] = field(default_factory=list)
    ignored: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def _parse_float(raw: str) -> float | None:
    """Parse a reading, rejecting surrounding whitespace and digit separators."""
    if raw != raw.strip() or "_" in raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


class ReportIngestor:
    """Turns one inbound station report into registry updates.

    Args:
        registry: Gauge registry shared by every request.
        mirror: Optional mirror adapter. Receives every decoded report,
            ignored fields included.
    """

    def __init__(
        self,
        registry: StationGaugeRegistry,
        mirror: MirrorPort | None = None,
    ) -> None:
        self.registry = registry
        self.mirror = mirror

    def ingest(
        self,
        path: str,
        query_string: str = "",
        remote: str = "",
    ) -> IngestResult:
        """Decode a report target and apply its readings.

        Never raises for malformed input: bad pairs, non-numeric values and
        rejected field names are logged and skipped.

        Args:
            path: Request path, possibly carrying ``&``-joined parameters.
            query_string: Raw query component.
            remote: Client address, used for logging only.

        Returns:
            IngestResult describing what happened to each field.
        """
        decoded = decode_report_target(path, query_string)
        station = decoded.station
        result = IngestResult(station=station, errors=list(decoded.errors))

        logger.debug(
            "AWP data received", extra={"station": station, "remote": remote}
        )
        if decoded.errors:
            logger.warning(
                "Failed to parse some query parameters. "
                "Continuing with successfully parsed parameters...",
                extra={"station": station, "errors": "; ".join(decoded.errors)},
            )

        if self.mirror is not None:
            self.mirror.dispatch(decoded.observation)

        for field_name, raw in decoded.observation.first_values().items():
            if is_ignored(field_name):
                result.ignored.append(field_name)
                continue

            value = _parse_float(raw)
            if value is None:
                logger.debug(
                    "Skipping non-numeric value",
                    extra={"station": station, "field": field_name, "value": raw},
                )
                result.skipped.append(field_name)
                continue

            try:
                gauge = self.registry.get_or_create(field_name)
            except ValueError as e:
                logger.warning(
                    "Rejected field name",
                    extra={
                        "station": station,
                        "field": field_name,
                        "error": str(e),
                    },
                )
                result.skipped.append(field_name)
                continue
            gauge.set(station, value)
            result.recorded.append(field_name)

        return result
