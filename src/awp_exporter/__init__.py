"""awp-exporter - Prometheus exporter for AWP weather stations.

Receives the report requests weather stations send, republishes their
readings as per-station gauges on ``/metrics``, and optionally mirrors each
report to a second collector.
"""

from awp_exporter.adapters.frameworks.asgi import create_asgi_app
from awp_exporter.adapters.logging import JsonLogFormatter, configure_logging
from awp_exporter.adapters.mirror import HttpMirrorDispatcher
from awp_exporter.config import ExporterConfig, MirrorConfig
from awp_exporter.core.decoder import DecodedReport, decode_report_target
from awp_exporter.core.ingest import IngestResult, ReportIngestor
from awp_exporter.core.models import LogEntry, Observation
from awp_exporter.core.ports import MirrorPort
from awp_exporter.core.registry import (
    IGNORED_FIELDS,
    StationGauge,
    StationGaugeRegistry,
    is_ignored,
)

__version__ = "1.0.0"

__all__ = [
    "IGNORED_FIELDS",
    "DecodedReport",
    "ExporterConfig",
    "HttpMirrorDispatcher",
    "IngestResult",
    "JsonLogFormatter",
    "LogEntry",
    "MirrorConfig",
    "MirrorPort",
    "Observation",
    "ReportIngestor",
    "StationGauge",
    "StationGaugeRegistry",
    "configure_logging",
    "create_asgi_app",
    "decode_report_target",
    "is_ignored",
]
