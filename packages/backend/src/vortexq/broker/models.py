"""Pydantic models for messages, subscriptions and delivery envelopes.

Learn: Field names are Pythonic (topic, payload, endpoint) while the wire
names match what publishers and subscribers already speak (pattern, data,
subscriber_address, topic_name). populate_by_name lets code construct
models either way; dump with by_alias=True to get the wire names.

Models are frozen: a delivery task holds an immutable copy of its message
and subscriber and never reaches back into the stores.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

_WIRE = ConfigDict(frozen=True, populate_by_name=True)


class Message(BaseModel):
    """A published message. The payload is carried without interpretation."""

    id: str
    topic: str = Field(alias="pattern")
    payload: Any = Field(default=None, alias="data")

    model_config = _WIRE


class Subscription(BaseModel):
    """A callback endpoint registered for a topic."""

    id: str
    endpoint: str = Field(alias="subscriber_address")
    topic: str = Field(alias="topic_name")

    model_config = _WIRE


class DeliveryEnvelope(BaseModel):
    """JSON wrapper POSTed to a subscriber endpoint."""

    event_type: str
    event_data: Message
    timestamp: datetime

    model_config = ConfigDict(frozen=True)

    @classmethod
    def wrap(cls, message: Message) -> "DeliveryEnvelope":
        return cls(
            event_type=message.topic,
            event_data=message,
            timestamp=datetime.now(timezone.utc),
        )
