"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Routes are served from the root (no /api/v1 prefix) because
existing publishers and subscribers already post to /publish and
/subscribe, and orchestrators probe /healthz and /readyz.
"""

from fastapi import APIRouter

from vortexq.api.broker import router as broker_router
from vortexq.api.health import router as health_router
from vortexq.api.metrics import router as metrics_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(broker_router, tags=["broker"])
api_router.include_router(metrics_router, tags=["metrics"])
