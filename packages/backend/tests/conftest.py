"""Test fixtures — in-process app, broker and fake webhook subscribers.

Learn: Outbound webhooks never leave the process. WebhookHook records
every POST it receives and answers with a configurable status per
endpoint; it plugs into WebhookSender through httpx.MockTransport.

The API client uses httpx.ASGITransport, which does not run the app's
lifespan, so no swirl scheduler runs in the background during API tests.
Tests drive cycles explicitly with broker.swirl().
"""

import json

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from vortexq.broker.core import VortexQ
from vortexq.broker.webhook import WebhookSender
from vortexq.config import Settings
from vortexq.main import create_app
from vortexq.metrics import BrokerMetrics


class WebhookHook:
    """Fake subscriber side: records envelopes, answers per endpoint."""

    def __init__(self):
        self.received: list[dict] = []
        self.statuses: dict[str, int] = {}
        self.errors: dict[str, Exception] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url in self.errors:
            raise self.errors[url]
        self.received.append({
            "url": url,
            "content_type": request.headers.get("content-type"),
            "body": json.loads(request.content),
        })
        return httpx.Response(self.statuses.get(url, 200), text="ok")

    def bodies_for(self, url: str) -> list[dict]:
        return [r["body"] for r in self.received if r["url"] == url]


@pytest.fixture()
def hook():
    return WebhookHook()


@pytest_asyncio.fixture()
async def sender(hook):
    client = httpx.AsyncClient(transport=httpx.MockTransport(hook.handler))
    try:
        yield WebhookSender(client=client, timeout=1.0)
    finally:
        await client.aclose()


@pytest.fixture()
def metrics():
    return BrokerMetrics()


@pytest.fixture()
def broker(sender, metrics):
    return VortexQ(sender, metrics=metrics)


@pytest.fixture()
def settings():
    return Settings(
        log_level="warning",
        project="vortexq-test",
        commit="abc123",
        build_time="2024-01-01T00:00:00Z",
        release="v0.0.1",
        readiness_drain_delay_seconds=0,
        swirl_interval_seconds=0.05,
    )


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client talking to the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
