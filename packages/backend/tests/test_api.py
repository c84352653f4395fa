"""HTTP API tests — index, publish/subscribe, probes, metrics, request IDs."""

import pytest

from vortexq.api.dependencies import get_broker


# ═══════════════════════════════════════════════════════════
# Index + probes
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_index_returns_build_info(client):
    r = await client.get("/")
    assert r.status_code == 200
    data = r.json()
    assert data["message"]
    assert data["info"] == {
        "project": "vortexq-test",
        "build_time": "2024-01-01T00:00:00Z",
        "commit": "abc123",
        "release": "v0.0.1",
    }


@pytest.mark.asyncio
async def test_healthz(client):
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "alive"}


@pytest.mark.asyncio
async def test_readyz_flips_when_shutting_down(client, app):
    r = await client.get("/readyz")
    assert r.status_code == 200
    assert r.json()["message"] == "service is ready"

    app.state.shutting_down = True
    r = await client.get("/readyz")
    assert r.status_code == 503
    assert r.json()["message"] == "service is shutting down"


# ═══════════════════════════════════════════════════════════
# Publish / subscribe
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_publish_queues_message(client, app):
    msg = {"id": "1", "pattern": "p", "data": {"n": 1}}
    r = await client.post("/publish", json=msg)
    assert r.status_code == 200
    assert r.json() == {"message": "message published", "data": msg}

    pending = app.state.broker.pending("p")
    assert len(pending) == 1
    assert pending[0].id == "1"
    assert pending[0].payload == {"n": 1}


@pytest.mark.asyncio
async def test_publish_without_data_is_accepted(client, app):
    r = await client.post("/publish", json={"id": "1", "pattern": "p"})
    assert r.status_code == 200
    assert app.state.broker.pending("p")[0].payload is None


@pytest.mark.asyncio
async def test_publish_bad_json(client):
    r = await client.post(
        "/publish",
        content=b"bad",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid request body"


@pytest.mark.asyncio
async def test_publish_missing_fields(client):
    r = await client.post("/publish", json={"data": "x"})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_subscribe_registers_endpoint(client, app):
    sub = {"id": "1", "subscriber_address": "http://a/hook", "topic_name": "t"}
    r = await client.post("/subscribe", json=sub)
    assert r.status_code == 200
    assert r.json()["message"] == "subscription processed successfully"

    subs = app.state.broker.subscribers("t")
    assert len(subs) == 1
    assert subs[0].endpoint == "http://a/hook"


@pytest.mark.asyncio
async def test_subscribe_bad_json(client):
    r = await client.post(
        "/subscribe",
        content=b"bad",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "invalid request body"


class _RejectingBroker:
    def subscribe(self, subscription):
        raise ValueError("endpoint not allowed")


@pytest.mark.asyncio
async def test_subscribe_failure_returns_500(client, app):
    app.dependency_overrides[get_broker] = lambda: _RejectingBroker()
    try:
        r = await client.post(
            "/subscribe",
            json={"id": "1", "subscriber_address": "x", "topic_name": "t"},
        )
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 500
    assert r.json() == {"message": "failed to subscribe", "error": "endpoint not allowed"}


@pytest.mark.asyncio
async def test_publish_subscribe_swirl_end_to_end(client, app, sender, hook):
    broker = app.state.broker
    broker.dispatcher.sender = sender

    await client.post("/subscribe", json={
        "id": "s", "subscriber_address": "http://sub.test/hook", "topic_name": "orders",
    })
    await client.post("/publish", json={"id": "1", "pattern": "orders", "data": "a"})
    await client.post("/publish", json={"id": "2", "pattern": "orders", "data": "b"})

    report = await broker.swirl()

    assert report.delivered == 2
    ids = sorted(b["event_data"]["id"] for b in hook.bodies_for("http://sub.test/hook"))
    assert ids == ["1", "2"]


# ═══════════════════════════════════════════════════════════
# Metrics + middleware
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_metrics_exposes_request_counters(client):
    await client.get("/healthz")
    await client.post("/publish", content=b"bad", headers={"Content-Type": "application/json"})

    r = await client.get("/metrics")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    body = r.text
    assert 'api_http_request_total{path="/healthz",status="200"} 1.0' in body
    assert 'api_http_request_error_total{path="/publish",status="400"} 1.0' in body
    assert "vortexq_dispatch_cycles_total" in body


@pytest.mark.asyncio
async def test_request_id_generated(client):
    r1 = await client.get("/healthz")
    r2 = await client.get("/healthz")
    assert "X-Request-ID" in r1.headers
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    r = await client.get("/healthz", headers={"X-Request-ID": "trace-12345"})
    assert r.headers["X-Request-ID"] == "trace-12345"
