"""Publish and subscribe routes.

Learn: Routes only translate HTTP to broker calls. Publishing never fails
once the body validates. Subscribing can in principle be rejected by the
broker, which surfaces as a 500 with the broker's error message.
Malformed bodies are turned into 400s by the validation handler
registered in main.py.
"""

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from vortexq.api.dependencies import get_broker
from vortexq.broker.core import VortexQ
from vortexq.broker.models import Message, Subscription

logger = structlog.get_logger()

router = APIRouter()


@router.post("/publish")
async def publish(body: Message, broker: VortexQ = Depends(get_broker)):
    broker.publish(body)
    logger.info("api.published", message_id=body.id, topic=body.topic)
    return {
        "message": "message published",
        "data": body.model_dump(by_alias=True),
    }


@router.post("/subscribe")
async def subscribe(body: Subscription, broker: VortexQ = Depends(get_broker)):
    try:
        broker.subscribe(body)
    except Exception as e:
        logger.exception("api.subscribe_failed", topic=body.topic)
        return JSONResponse(
            status_code=500,
            content={"message": "failed to subscribe", "error": str(e)},
        )
    logger.info(
        "api.subscription_received",
        subscription_id=body.id,
        topic=body.topic,
    )
    return {"message": "subscription processed successfully"}
