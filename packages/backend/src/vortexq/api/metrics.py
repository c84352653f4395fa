"""Prometheus scrape endpoint."""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from vortexq.api.dependencies import get_metrics
from vortexq.metrics import BrokerMetrics

router = APIRouter()


@router.get("/metrics")
async def prometheus_metrics(metrics: BrokerMetrics = Depends(get_metrics)):
    body, content_type = metrics.render()
    return Response(content=body, media_type=content_type)
