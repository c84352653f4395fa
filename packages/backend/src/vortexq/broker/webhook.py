"""Outbound webhook delivery.

Learn: One call to WebhookSender.deliver() is one delivery unit: a single
message POSTed to a single subscriber endpoint as a JSON envelope:

    {"event_type": "<topic>",
     "event_data": {"id": "<id>", "pattern": "<topic>", "data": <payload>},
     "timestamp": "<RFC 3339 UTC>"}

Only HTTP 200 counts as success. Failures are classified into four kinds
(serialization, request construction, transport, non-200 status). send()
raises them; deliver() logs and returns them as a DeliveryResult, because
the broker's policy is log-and-drop: no retries, no dead letters.

The whole round trip is capped by one total timeout (5s by default),
enforced with asyncio.wait_for on top of httpx's per-phase timeouts.
httpx reads and closes the response body before post() returns, on every
path, so nothing leaks when a subscriber answers with an error.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

import httpx
import structlog
from pydantic_core import PydanticSerializationError

from vortexq.broker.models import DeliveryEnvelope, Message

logger = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 5.0


class WebhookDeliveryError(Exception):
    kind = "delivery_error"

    def __init__(self, endpoint: str, detail: str):
        self.endpoint = endpoint
        self.detail = detail
        super().__init__(f"webhook delivery to {endpoint} failed: {detail}")


class EnvelopeSerializationError(WebhookDeliveryError):
    kind = "serialization_error"


class RequestConstructionError(WebhookDeliveryError):
    kind = "request_error"


class TransportError(WebhookDeliveryError):
    kind = "transport_error"


class NonSuccessStatusError(WebhookDeliveryError):
    kind = "non_success_status"

    def __init__(self, endpoint: str, status_code: int):
        self.status_code = status_code
        super().__init__(endpoint, f"status {status_code}")


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one delivery unit."""

    message_id: str
    endpoint: str
    ok: bool
    status_code: Optional[int] = None
    error: Optional[WebhookDeliveryError] = None

    @property
    def outcome(self) -> str:
        return "delivered" if self.ok else self.error.kind


class WebhookSender:
    """POSTs delivery envelopes to subscriber endpoints.

    Pass a shared httpx.AsyncClient to reuse connections across a cycle;
    without one, each delivery opens and closes its own client.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.client = client
        self.timeout = timeout

    def build_payload(self, message: Message, endpoint: str) -> bytes:
        envelope = DeliveryEnvelope.wrap(message)
        try:
            return envelope.model_dump_json(by_alias=True).encode()
        except (PydanticSerializationError, TypeError, ValueError) as e:
            raise EnvelopeSerializationError(endpoint, str(e)) from e

    async def send(self, message: Message, endpoint: str) -> int:
        """Deliver one message to one endpoint. Returns the status code.

        Raises a WebhookDeliveryError subclass on any failure.
        """
        body = self.build_payload(message, endpoint)
        if self.client is not None:
            return await self._post(self.client, body, endpoint)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self._post(client, body, endpoint)

    async def _post(
        self, client: httpx.AsyncClient, body: bytes, endpoint: str
    ) -> int:
        try:
            request = client.build_request(
                "POST",
                endpoint,
                content=body,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise RequestConstructionError(endpoint, str(e)) from e
        if request.url.scheme not in ("http", "https") or not request.url.host:
            raise RequestConstructionError(endpoint, "endpoint must be an absolute http(s) URL")

        try:
            response = await asyncio.wait_for(
                client.send(request), timeout=self.timeout
            )
        except httpx.UnsupportedProtocol as e:
            raise RequestConstructionError(endpoint, str(e)) from e
        except asyncio.TimeoutError as e:
            raise TransportError(
                endpoint, f"timed out after {self.timeout}s"
            ) from e
        except httpx.RequestError as e:
            # Transport failures plus anything else httpx raises while
            # sending or reading, e.g. a body it cannot decode.
            raise TransportError(endpoint, str(e) or type(e).__name__) from e

        if response.status_code != 200:
            raise NonSuccessStatusError(endpoint, response.status_code)
        return response.status_code

    async def deliver(self, message: Message, endpoint: str) -> DeliveryResult:
        """Deliver and classify. Never raises for delivery failures."""
        try:
            status_code = await self.send(message, endpoint)
        except WebhookDeliveryError as e:
            logger.warning(
                "webhook.delivery_failed",
                message_id=message.id,
                topic=message.topic,
                endpoint=endpoint,
                kind=e.kind,
                error=e.detail,
            )
            return DeliveryResult(
                message_id=message.id,
                endpoint=endpoint,
                ok=False,
                status_code=getattr(e, "status_code", None),
                error=e,
            )

        logger.info(
            "webhook.delivered",
            message_id=message.id,
            topic=message.topic,
            endpoint=endpoint,
            status=status_code,
        )
        return DeliveryResult(
            message_id=message.id,
            endpoint=endpoint,
            ok=True,
            status_code=status_code,
        )
