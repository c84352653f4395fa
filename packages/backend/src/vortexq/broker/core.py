"""VortexQ — the broker facade used by the HTTP API and the scheduler.

Learn: VortexQ wires the two stores to a Dispatcher and exposes the three
operations the outside world needs: publish, subscribe, swirl. Nothing
here talks to the network directly; swirl() delegates to the dispatcher,
which hands immutable copies of messages to the webhook sender.
"""

from typing import Optional

import structlog

from vortexq.broker.models import Message, Subscription
from vortexq.broker.store import MessageStore, SubscriptionStore
from vortexq.broker.webhook import WebhookSender
from vortexq.dispatcher.swirl import (
    DEFAULT_MAX_CONCURRENT,
    CycleReport,
    Dispatcher,
)
from vortexq.metrics import BrokerMetrics

logger = structlog.get_logger()


class VortexQ:
    def __init__(
        self,
        sender: Optional[WebhookSender] = None,
        *,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        metrics: Optional[BrokerMetrics] = None,
    ):
        self.messages = MessageStore()
        self.subscriptions = SubscriptionStore()
        self.dispatcher = Dispatcher(
            self.messages,
            self.subscriptions,
            sender,
            max_concurrent=max_concurrent,
            metrics=metrics,
        )

    def publish(self, message: Message) -> None:
        """Queue a message for its topic. Always accepted."""
        self.messages.publish(message)
        logger.debug("broker.published", message_id=message.id, topic=message.topic)

    def subscribe(self, subscription: Subscription) -> None:
        """Register an endpoint for a topic.

        Never fails today. Callers still handle exceptions so endpoint
        validation can be added here without touching the API layer.
        """
        self.subscriptions.subscribe(subscription)
        logger.info(
            "broker.subscribed",
            subscription_id=subscription.id,
            topic=subscription.topic,
            endpoint=subscription.endpoint,
        )

    async def swirl(self) -> CycleReport:
        """Run one dispatch cycle."""
        return await self.dispatcher.run_cycle()

    # ─── Inspection ────────────────────────────────────────

    def pending(self, topic: str) -> list[Message]:
        return self.messages.pending(topic)

    def subscribers(self, topic: str) -> tuple[Subscription, ...]:
        return self.subscriptions.get(topic)

    def stats(self) -> dict:
        return {
            "topics": len(self.messages.topics()),
            "pending_messages": self.messages.depth(),
            "subscriptions": self.subscriptions.count(),
        }
