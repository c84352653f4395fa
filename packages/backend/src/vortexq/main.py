"""FastAPI application factory.

Learn: App factory pattern. create_app() returns a configured FastAPI
instance. The lifespan owns the broker's moving parts: the shared HTTP
client for outbound webhooks and the swirl scheduler task.

Shutdown order matters:
1. Flip readiness to 503 so load balancers stop sending publishes
2. Wait the readiness drain delay so that change propagates
3. Stop the scheduler and let its in-flight cycle finish. The cycle is
   never cancelled; past the shutdown timeout we only log and keep waiting
4. Close the outbound HTTP client
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from vortexq import __version__
from vortexq.api import api_router
from vortexq.broker.core import VortexQ
from vortexq.broker.webhook import WebhookSender
from vortexq.config import Settings, settings as default_settings
from vortexq.dispatcher.scheduler import SwirlScheduler
from vortexq.logging_setup import setup_logging
from vortexq.metrics import BrokerMetrics

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown.
    """
    cfg: Settings = app.state.settings
    logger.info(
        "vortexq.starting",
        version=__version__,
        project=cfg.project,
        commit=cfg.commit,
        build_time=cfg.build_time,
        release=cfg.release,
        address=cfg.combined_address,
    )

    client = httpx.AsyncClient(timeout=cfg.delivery_timeout_seconds)
    app.state.broker.dispatcher.sender = WebhookSender(
        client=client, timeout=cfg.delivery_timeout_seconds
    )

    scheduler = SwirlScheduler(app.state.broker, interval=cfg.swirl_interval_seconds)
    app.state.scheduler = scheduler
    swirl_task = asyncio.create_task(scheduler.run_loop())

    yield

    app.state.shutting_down = True
    logger.info("vortexq.shutdown_signal_received")

    # Give time for the readiness check to propagate
    await asyncio.sleep(cfg.readiness_drain_delay_seconds)
    logger.info("vortexq.readiness_propagated")

    scheduler.stop()
    try:
        await asyncio.wait_for(
            asyncio.shield(swirl_task), timeout=cfg.shutdown_timeout_seconds
        )
    except asyncio.TimeoutError:
        logger.warning(
            "vortexq.swirl_shutdown_slow",
            timeout=cfg.shutdown_timeout_seconds,
        )
        await swirl_task

    await client.aclose()
    logger.info("vortexq.shutdown_complete")


# Existing clients match on these exact strings.
_INVALID_BODY_MESSAGES = {"/publish": "Invalid request body"}


async def _invalid_body_handler(request: Request, exc: RequestValidationError):
    message = _INVALID_BODY_MESSAGES.get(request.url.path, "invalid request body")
    return JSONResponse(
        status_code=400,
        content={"message": message, "error": str(exc.errors())},
    )


def create_app(config: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    cfg = config or default_settings
    setup_logging(cfg.log_level)

    app = FastAPI(
        title="VortexQ",
        description="Topic-based message relay with periodic webhook fan-out",
        version=__version__,
        lifespan=lifespan,
    )

    metrics = BrokerMetrics()
    app.state.settings = cfg
    app.state.metrics = metrics
    app.state.version = cfg.build_version()
    app.state.shutting_down = False
    app.state.broker = VortexQ(
        WebhookSender(timeout=cfg.delivery_timeout_seconds),
        max_concurrent=cfg.max_concurrent_deliveries,
        metrics=metrics,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → RequestMetrics → handler

    from vortexq.middleware.metrics import RequestMetricsMiddleware
    from vortexq.middleware.request_id import RequestIdMiddleware

    app.add_middleware(RequestMetricsMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(RequestValidationError, _invalid_body_handler)

    app.include_router(api_router)

    return app
