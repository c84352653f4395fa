"""Service info, liveness and readiness endpoints.

Learn: Liveness and readiness are deliberately different. /healthz says
the process is up. /readyz flips to 503 as soon as shutdown begins, so a
load balancer stops routing publishes here while the last swirl cycle
drains.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from vortexq.api.dependencies import get_version, is_shutting_down
from vortexq.version import Version

router = APIRouter()


@router.get("/")
async def index(info: Version = Depends(get_version)):
    """Service banner with build information."""
    return {
        "message": "Successfully loaded VortexQ Service!",
        "info": info.model_dump(),
    }


@router.get("/healthz")
async def liveness():
    return {"status": "alive"}


@router.get("/readyz")
async def readiness(shutting_down: bool = Depends(is_shutting_down)):
    if shutting_down:
        return JSONResponse(
            status_code=503,
            content={"message": "service is shutting down"},
        )
    return {"message": "service is ready"}
