"""BDD step definitions for station report ingestion."""

import asyncio
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest
from pytest_bdd import given, parsers, then, when

from awp_exporter.adapters.frameworks.asgi import create_asgi_app
from awp_exporter.adapters.mirror import HttpMirrorDispatcher
from awp_exporter.config import MirrorConfig
from awp_exporter.core.ingest import ReportIngestor
from awp_exporter.core.registry import StationGaugeRegistry


@dataclass
class IngestionScenarioContext:
    """Shared state between steps in an ingestion scenario."""

    registry: StationGaugeRegistry = field(default_factory=StationGaugeRegistry)
    mirror_config: MirrorConfig = field(default_factory=MirrorConfig)
    sink_requests: list[httpx.Request] = field(default_factory=list)
    sink_error: Exception | None = None
    responses: list[httpx.Response] = field(default_factory=list)

    def sink(self, request: httpx.Request) -> httpx.Response:
        self.sink_requests.append(request)
        if self.sink_error is not None:
            raise self.sink_error
        return httpx.Response(200)


def run_async(coro: Any) -> Any:
    """Run a coroutine synchronously."""
    return asyncio.run(coro)


async def send_report(ctx: IngestionScenarioContext, target: str) -> httpx.Response:
    """Send one report through a fresh app and wait for its mirror request."""
    mirror = HttpMirrorDispatcher(
        ctx.mirror_config, transport=httpx.MockTransport(ctx.sink)
    )
    app = create_asgi_app(ReportIngestor(ctx.registry, mirror=mirror))
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get(target)
    await mirror.aclose()
    return response


@pytest.fixture
def ctx() -> IngestionScenarioContext:
    """Fresh scenario context for each test."""
    return IngestionScenarioContext()


# === Given ===
@given(parsers.parse('an exporter mirroring to host "{host}" on port {port:d}'))
def given_exporter(ctx: IngestionScenarioContext, host: str, port: int) -> None:
    ctx.mirror_config = MirrorConfig(host=host, port=port)


@given("the mirror sink refuses connections")
def given_sink_down(ctx: IngestionScenarioContext) -> None:
    ctx.sink_error = httpx.ConnectError("connection refused")


@given("mirroring is disabled")
def given_mirroring_disabled(ctx: IngestionScenarioContext) -> None:
    ctx.mirror_config = MirrorConfig()


# === When ===
@when(parsers.parse('a station sends "{target}"'))
def when_station_sends(ctx: IngestionScenarioContext, target: str) -> None:
    ctx.responses.append(run_async(send_report(ctx, target)))


# === Then ===
@then(parsers.parse("the response status is {status:d}"))
def then_status(ctx: IngestionScenarioContext, status: int) -> None:
    assert ctx.responses[-1].status_code == status
    assert ctx.responses[-1].content == b""


@then(parsers.parse('the metric "{name}" for station "{station}" is {value:g}'))
def then_metric_value(
    ctx: IngestionScenarioContext, name: str, station: str, value: float
) -> None:
    sample = ctx.registry.collector_registry.get_sample_value(
        name, {"station": station}
    )
    assert sample == value


@then(parsers.parse('no metric exists for field "{field_name}"'))
def then_no_metric(ctx: IngestionScenarioContext, field_name: str) -> None:
    assert field_name not in ctx.registry


@then(parsers.parse('the mirror received "{url}"'))
def then_mirror_received(ctx: IngestionScenarioContext, url: str) -> None:
    assert [str(r.url) for r in ctx.sink_requests] == [url]


@then(parsers.parse('the mirror request carried header "{header}" with "{value}"'))
def then_mirror_header(ctx: IngestionScenarioContext, header: str, value: str) -> None:
    assert ctx.sink_requests[-1].headers[header] == value


@then("the mirror received no requests")
def then_mirror_idle(ctx: IngestionScenarioContext) -> None:
    assert ctx.sink_requests == []
