"""HTTP mirror adapter.

Replays every decoded report, ignored fields included, as a GET request to a
secondary collector. Delivery is fire-and-forget: each report becomes one
detached asyncio task whose failures end in the log.
"""

import asyncio
import logging
from urllib.parse import quote, urlencode

import httpx

from awp_exporter.config import MIRROR_USER_AGENT, MirrorConfig
from awp_exporter.core.models import Observation

logger = logging.getLogger(__name__)


def build_mirror_url(config: MirrorConfig, observation: Observation) -> str:
    """Return the full sink URL for an observation.

    The query re-encodes every observed value, sorted by key.
    """
    base = config.url_for(quote(observation.station, safe=""))
    query = urlencode(sorted(observation.fields.items()), doseq=True)
    return f"{base}?{query}" if query else base


class HttpMirrorDispatcher:
    """Implementation of MirrorPort backed by httpx.

    Args:
        config: Sink location and timeout. Dispatch is a no-op when
            ``config.host`` is empty.
        client: Optional preconfigured AsyncClient. When omitted one is
            created on first use and closed by ``aclose()``.
        transport: Optional transport for the internally created client.
    """

    def __init__(
        self,
        config: MirrorConfig,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._client = client
        self._owns_client = client is None
        self._transport = transport
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of mirror requests still in flight."""
        return len(self._tasks)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                transport=self._transport,
            )
        return self._client

    def dispatch(self, observation: Observation) -> None:
        """Start mirroring an observation in the background.

        Returns immediately. Must be called from a running event loop;
        otherwise the report is dropped with a warning.
        """
        if not self.config.enabled:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "No running event loop, mirror request dropped",
                extra={"station": observation.station},
            )
            return

        task = loop.create_task(self._send(observation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _send(self, observation: Observation) -> None:
        station = observation.station
        try:
            url = build_mirror_url(self.config, observation)
            request = self._get_client().build_request(
                "GET", url, headers={"User-Agent": MIRROR_USER_AGENT}
            )
        except Exception as e:
            logger.warning(
                "Failed to create mirror request",
                extra={"station": station, "error": str(e)},
            )
            return

        try:
            response = await self._get_client().send(request)
        except Exception as e:
            logger.warning(
                "Failed to send mirror request",
                extra={"station": station, "url": str(request.url), "error": str(e)},
            )
            return

        if response.status_code >= 400:
            logger.warning(
                "Mirror request returned error status",
                extra={
                    "station": station,
                    "url": str(request.url),
                    "status": response.status_code,
                },
            )
        else:
            logger.debug(
                "Mirror request successful",
                extra={
                    "station": station,
                    "url": str(request.url),
                    "status": response.status_code,
                },
            )

    async def wait_idle(self) -> None:
        """Wait until every dispatched mirror request has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def aclose(self) -> None:
        """Let in-flight requests finish, then close the owned client."""
        await self.wait_idle()
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
