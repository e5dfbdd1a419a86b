"""Shared test fixtures for all test modules."""

from dataclasses import dataclass, field

import httpx
import pytest

from awp_exporter.adapters.frameworks.asgi import create_asgi_app
from awp_exporter.adapters.mirror import HttpMirrorDispatcher
from awp_exporter.config import MirrorConfig
from awp_exporter.core.ingest import ReportIngestor
from awp_exporter.core.models import Observation
from awp_exporter.core.registry import StationGaugeRegistry


@dataclass
class CapturingSink:
    """Stand-in mirror collector that records every request it receives."""

    status_code: int = 200
    error: Exception | None = None
    requests: list[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text="OK")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@dataclass
class RecordingMirror:
    """MirrorPort implementation that keeps dispatched observations."""

    observations: list[Observation] = field(default_factory=list)

    def dispatch(self, observation: Observation) -> None:
        self.observations.append(observation)


@pytest.fixture
def registry() -> StationGaugeRegistry:
    """Fixture providing an empty gauge registry."""
    return StationGaugeRegistry()


@pytest.fixture
def sink() -> CapturingSink:
    """Fixture providing a mirror sink that answers 200."""
    return CapturingSink()


@pytest.fixture
def mirror_config() -> MirrorConfig:
    """Mirror settings pointing at host ``h`` with all other defaults."""
    return MirrorConfig(host="h", port=8000, path="/data/report", https=False)


@pytest.fixture
def mirror(mirror_config: MirrorConfig, sink: CapturingSink) -> HttpMirrorDispatcher:
    """Fixture providing a mirror dispatcher wired to the capturing sink."""
    return HttpMirrorDispatcher(mirror_config, transport=sink.transport)


@pytest.fixture
def recording_mirror() -> RecordingMirror:
    """Fixture providing a mirror that only records dispatches."""
    return RecordingMirror()


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(ingestor)
            async with asgi_test_client(app) as client:
                response = await client.get("/metrics")
    """

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client


@pytest.fixture
async def exporter_client(
    registry: StationGaugeRegistry,
    mirror: HttpMirrorDispatcher,
    asgi_test_client,
):
    """Fixture combining registry, mirror and ASGI test client.

    Yields a tuple of (client, registry, mirror). The mirror is closed after
    the test, so every dispatched request has reached the sink by then.
    """
    ingestor = ReportIngestor(registry, mirror=mirror)
    app = create_asgi_app(ingestor, on_shutdown=[mirror.aclose])
    async with asgi_test_client(app) as client:
        yield client, registry, mirror
    await mirror.aclose()
