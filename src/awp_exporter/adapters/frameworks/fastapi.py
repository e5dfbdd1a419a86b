"""FastAPI adapter for the exporter's HTTP surface."""

import logging

from fastapi import APIRouter, BackgroundTasks, Request, Response

from awp_exporter.adapters.frameworks.asgi import _query_string, _remote_addr
from awp_exporter.core.ingest import ReportIngestor

logger = logging.getLogger(__name__)

REPORT_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def create_exporter_router(ingestor: ReportIngestor) -> APIRouter:
    """Create a FastAPI router with the report and /metrics endpoints.

    Args:
        ingestor: Report ingestor holding the shared gauge registry.

    Returns:
        APIRouter with /data/report/{target} and /metrics configured.
    """
    router = APIRouter()

    async def ingest(path: str, query_string: str, remote: str) -> None:
        # Runs on the event loop after the 204 is sent, so the mirror
        # dispatcher can schedule its task.
        try:
            ingestor.ingest(path, query_string, remote)
        except Exception:
            logger.exception("Error handling station report", extra={"path": path})

    @router.api_route("/data/report/{target:path}", methods=REPORT_METHODS)
    async def report(request: Request, background_tasks: BackgroundTasks) -> Response:
        """Acknowledge a station report and ingest it in the background."""
        background_tasks.add_task(
            ingest,
            request.scope["path"],
            _query_string(request.scope),
            _remote_addr(request.scope),
        )
        return Response(status_code=204)

    @router.get("/metrics")
    async def get_metrics() -> Response:
        """Return sensor gauges in Prometheus text format."""
        body, content_type = ingestor.registry.render()
        return Response(content=body, media_type=content_type)

    return router
