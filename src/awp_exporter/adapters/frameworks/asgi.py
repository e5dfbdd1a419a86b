"""ASGI adapter for the exporter's HTTP surface.

This adapter provides a framework-agnostic ASGI application that can be used
with any ASGI server (uvicorn, hypercorn, daphne) without requiring FastAPI
as a dependency.

Routes:
    /data/report/<station>?<field>=<value>&...  station report, always 204
    /metrics                                    Prometheus text exposition
"""

import json
import logging
from collections.abc import Awaitable, Callable, Coroutine, Sequence
from typing import Any

from awp_exporter.core.ingest import ReportIngestor

logger = logging.getLogger(__name__)

REPORT_PREFIX = "/data/report/"
METRICS_PATH = "/metrics"

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]
ShutdownHook = Callable[[], Awaitable[None]]


def _query_string(scope: Scope) -> str:
    """Return the raw query component of an ASGI scope as text."""
    return scope.get("query_string", b"").decode(errors="replace")


def _remote_addr(scope: Scope) -> str:
    """Format the client address from an ASGI scope, if the server gave one."""
    client = scope.get("client")
    if not client:
        return ""
    host, port = client
    return f"{host}:{port}"


async def _send_response(
    send: Send,
    status: int,
    content_type: str | None = None,
    body: bytes | str = b"",
) -> None:
    """Send an HTTP response with headers and body.

    Args:
        send: ASGI send callable for writing response.
        status: HTTP status code.
        content_type: Content-Type header value, omitted when None.
        body: Response body; strings are UTF-8 encoded.
    """
    headers = []
    if content_type is not None:
        headers.append((b"content-type", content_type.encode()))
    await send({"type": "http.response.start", "status": status, "headers": headers})
    if isinstance(body, str):
        body = body.encode()
    await send({"type": "http.response.body", "body": body})


async def _handle_lifespan(
    receive: Receive, send: Send, on_shutdown: Sequence[ShutdownHook]
) -> None:
    """Answer ASGI lifespan events, running shutdown hooks before exit."""
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            for hook in on_shutdown:
                try:
                    await hook()
                except Exception:
                    logger.exception("Shutdown hook failed")
            await send({"type": "lifespan.shutdown.complete"})
            return


async def _handle_report(ingestor: ReportIngestor, scope: Scope, send: Send) -> None:
    """Acknowledge a station report, then ingest it.

    The device gets its 204 before any processing starts; nothing that
    happens afterwards can change the response.
    """
    await _send_response(send, 204)
    try:
        ingestor.ingest(scope["path"], _query_string(scope), _remote_addr(scope))
    except Exception:
        logger.exception("Error handling station report", extra={"path": scope["path"]})


async def _handle_metrics(ingestor: ReportIngestor, send: Send) -> None:
    """Render the gauge registry, answering 500 if rendering fails."""
    try:
        body, content_type = ingestor.registry.render()
    except Exception:
        logger.exception("Error encoding metrics endpoint")
        error_body = json.dumps({"error": "Internal Server Error"})
        await _send_response(send, 500, "application/json", error_body)
        return
    await _send_response(send, 200, content_type, body)


def create_asgi_app(
    ingestor: ReportIngestor,
    on_shutdown: Sequence[ShutdownHook] = (),
) -> ASGIApp:
    """Create an ASGI app with the report and /metrics endpoints.

    Args:
        ingestor: Report ingestor holding the shared gauge registry.
        on_shutdown: Coroutines awaited when the server shuts down, e.g.
            the mirror dispatcher's ``aclose``.

    Returns:
        ASGI application callable.
    """

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await _handle_lifespan(receive, send, on_shutdown)
            return
        if scope["type"] != "http":
            return

        path = scope["path"]

        if path.startswith(REPORT_PREFIX):
            await _handle_report(ingestor, scope, send)
        elif path == METRICS_PATH:
            await _handle_metrics(ingestor, send)
        else:
            await _send_response(send, 404, "text/plain", "Not Found")

    return app
