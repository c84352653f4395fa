"""VortexQ CLI — run the relay and talk to a running one.

Usage:
    vortexq serve                                # Run the HTTP server + swirl loop
    vortexq publish orders '{"sku": "A1"}'       # Publish a message to a topic
    vortexq subscribe orders http://me/hook      # Register a webhook for a topic
    vortexq status                               # Build info + readiness
    vortexq version                              # Local version
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
import uuid
from typing import Any, Optional

import click
import httpx

from vortexq import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8085"


def _api_url() -> str:
    return os.environ.get("VORTEXQ_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the VortexQ server."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=10.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when a loop is already running (e.g. CliRunner
    invoked from an async test).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _parse_data(raw: str) -> Any:
    """Interpret DATA as JSON when it parses, otherwise as a plain string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _fail(response: httpx.Response) -> None:
    click.secho(
        f"Error: server answered {response.status_code}: {response.text}",
        fg="red",
        err=True,
    )
    sys.exit(1)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="vortexq")
def main():
    """VortexQ — topic-based message relay with webhook fan-out."""


# ---------------------------------------------------------------------------
# vortexq serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", help="Bind address (default: SERVER_SERVICE_HOST or 0.0.0.0)")
@click.option("--port", type=int, help="Bind port (default: SERVER_SERVICE_PORT or 8085)")
def serve(host: Optional[str], port: Optional[int]):
    """Run the HTTP API and the periodic swirl loop."""
    import uvicorn

    from vortexq.config import Settings
    from vortexq.main import create_app

    overrides = {}
    if host:
        overrides["host"] = host
    if port:
        overrides["port"] = port
    cfg = Settings(**overrides)

    uvicorn.run(
        create_app(cfg),
        host=cfg.host,
        port=cfg.port,
        log_level="warning",
        timeout_graceful_shutdown=int(
            cfg.readiness_drain_delay_seconds + cfg.shutdown_timeout_seconds
        ),
    )


# ---------------------------------------------------------------------------
# vortexq publish
# ---------------------------------------------------------------------------


@main.command()
@click.argument("topic")
@click.argument("data")
@click.option("--id", "message_id", help="Message ID (random UUID if omitted)")
def publish(topic: str, data: str, message_id: Optional[str]):
    """Publish DATA to TOPIC. DATA is parsed as JSON when possible."""
    _run(_publish_impl(topic, data, message_id))


async def _publish_impl(topic: str, data: str, message_id: Optional[str]):
    body = {
        "id": message_id or str(uuid.uuid4()),
        "pattern": topic,
        "data": _parse_data(data),
    }
    async with _client() as c:
        r = await c.post("/publish", json=body)
        if r.status_code != 200:
            _fail(r)
        click.secho(f"Published {body['id']} to {topic}", fg="green")


# ---------------------------------------------------------------------------
# vortexq subscribe
# ---------------------------------------------------------------------------


@main.command()
@click.argument("topic")
@click.argument("endpoint")
@click.option("--id", "subscription_id", help="Subscription ID (random UUID if omitted)")
def subscribe(topic: str, endpoint: str, subscription_id: Optional[str]):
    """Deliver every message of TOPIC to ENDPOINT."""
    _run(_subscribe_impl(topic, endpoint, subscription_id))


async def _subscribe_impl(topic: str, endpoint: str, subscription_id: Optional[str]):
    body = {
        "id": subscription_id or str(uuid.uuid4()),
        "subscriber_address": endpoint,
        "topic_name": topic,
    }
    async with _client() as c:
        r = await c.post("/subscribe", json=body)
        if r.status_code != 200:
            _fail(r)
        click.secho(f"Subscribed {endpoint} to {topic}", fg="green")


# ---------------------------------------------------------------------------
# vortexq status
# ---------------------------------------------------------------------------


@main.command()
def status():
    """Show server build info and readiness."""
    _run(_status_impl())


async def _status_impl():
    async with _client() as c:
        r = await c.get("/")
        if r.status_code != 200:
            _fail(r)
        click.secho("Server:", bold=True)
        click.echo(_pretty_json(r.json()["info"]))

        r = await c.get("/readyz")
        color = "green" if r.status_code == 200 else "yellow"
        click.echo()
        click.secho(f"Readiness: {r.json()['message']}", fg=color)


# ---------------------------------------------------------------------------
# vortexq version
# ---------------------------------------------------------------------------


@main.command()
def version():
    """Print the local build information."""
    from vortexq.config import Settings

    click.echo(_pretty_json(Settings().build_version().model_dump()))


if __name__ == "__main__":
    main()
