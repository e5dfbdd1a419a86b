"""Command-line entry point: wire the exporter together and serve it."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence

import uvicorn

from awp_exporter.adapters.frameworks.asgi import ASGIApp, create_asgi_app
from awp_exporter.adapters.logging import configure_logging
from awp_exporter.adapters.mirror import HttpMirrorDispatcher
from awp_exporter.config import ExporterConfig, MirrorConfig
from awp_exporter.core.ingest import ReportIngestor
from awp_exporter.core.registry import StationGaugeRegistry

logger = logging.getLogger(__name__)


def build_parser(defaults: ExporterConfig) -> argparse.ArgumentParser:
    """Build the argument parser, seeding defaults from the environment."""
    mirror = defaults.mirror
    parser = argparse.ArgumentParser(
        prog="awp-exporter",
        description="Expose AWP weather-station reports as Prometheus gauges.",
    )
    parser.add_argument(
        "--port", type=int, default=defaults.port, help="port to listen on"
    )
    parser.add_argument(
        "--host", default=defaults.host, help="address to bind the HTTP server to"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=defaults.verbose,
        help="enable verbose (debug) logging",
    )
    parser.add_argument(
        "--mirror-host",
        default=mirror.host,
        help="hostname to mirror reports to (enables mirroring when set)",
    )
    parser.add_argument(
        "--mirror-port",
        type=int,
        default=mirror.port,
        help="port to mirror reports to (default 8000, 443 with --mirror-https)",
    )
    parser.add_argument(
        "--mirror-path", default=mirror.path, help="path to mirror reports to"
    )
    parser.add_argument(
        "--mirror-https",
        action="store_true",
        default=mirror.https,
        help="use HTTPS for mirror requests",
    )
    return parser


def parse_config(argv: Sequence[str] | None = None) -> ExporterConfig:
    """Resolve configuration from environment variables and flags.

    Flags take precedence over ``AWP_EXPORTER_*`` environment variables.
    """
    defaults = ExporterConfig.from_env()
    args = build_parser(defaults).parse_args(argv)
    return ExporterConfig(
        port=args.port,
        host=args.host,
        verbose=args.verbose,
        mirror=MirrorConfig(
            host=args.mirror_host,
            port=args.mirror_port,
            path=args.mirror_path,
            https=args.mirror_https,
        ),
    )


def log_mirror_config(mirror: MirrorConfig) -> None:
    if mirror.enabled:
        logger.info(
            "Mirroring enabled",
            extra={
                "host": mirror.host,
                "port": mirror.effective_port,
                "path": mirror.path,
                "scheme": mirror.scheme,
            },
        )
    else:
        logger.info("Mirroring disabled")


def build_app(config: ExporterConfig) -> ASGIApp:
    """Compose registry, mirror and ingestor into the ASGI application."""
    registry = StationGaugeRegistry()
    mirror = HttpMirrorDispatcher(config.mirror)
    ingestor = ReportIngestor(registry, mirror=mirror)
    return create_asgi_app(ingestor, on_shutdown=[mirror.aclose])


def main(argv: Sequence[str] | None = None) -> None:
    config = parse_config(argv)
    configure_logging(config.verbose)
    log_mirror_config(config.mirror)

    app = build_app(config)
    logger.info(
        "awp-exporter listening", extra={"host": config.host, "port": config.port}
    )
    # log_config=None keeps uvicorn on the root JSON handler
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_config=None,
        log_level="debug" if config.verbose else "info",
    )
