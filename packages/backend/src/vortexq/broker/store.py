"""In-memory stores for pending messages and subscriptions.

Learn: These are the only shared mutable state in the broker. Every
mutation goes through a lock, and no lock is ever held across an await
or a network call, so the stores are safe to use from the event loop and
from worker threads (sync FastAPI handlers, tests) alike.

MessageStore keeps one lock per topic so a drain of topic A never blocks
publishers of topic B. The append and the drain-swap happen under the
same per-topic lock, which closes the lost-update window of a
load-then-store sequence: a publish either lands before the swap (and is
drained) or after it (and waits for the next cycle).

SubscriptionStore uses copy-on-write tuples. Readers get the tuple that
was current when they asked; a concurrent subscribe replaces the tuple
rather than mutating it, so snapshots stay stable for a whole cycle.
"""

import threading
from typing import Optional

import structlog

from vortexq.broker.models import Message, Subscription

logger = structlog.get_logger()


class _TopicQueue:
    __slots__ = ("lock", "messages")

    def __init__(self):
        self.lock = threading.Lock()
        self.messages: list[Message] = []


class MessageStore:
    """Topic name → ordered list of pending messages."""

    def __init__(self):
        self._lock = threading.Lock()
        self._queues: dict[str, _TopicQueue] = {}

    def _queue(self, topic: str) -> _TopicQueue:
        queue = self._queues.get(topic)
        if queue is not None:
            return queue
        with self._lock:
            queue = self._queues.get(topic)
            if queue is None:
                queue = _TopicQueue()
                self._queues[topic] = queue
                logger.info("broker.topic_created", topic=topic)
            return queue

    def publish(self, message: Message) -> None:
        """Append a message to its topic's queue, creating the topic if new."""
        queue = self._queue(message.topic)
        with queue.lock:
            queue.messages.append(message)

    def drain(self, topic: str) -> Optional[list[Message]]:
        """Atomically take every pending message of a topic.

        The queue is swapped for an empty one whatever happens to the
        returned messages afterwards. Callers are expected to drain only
        topics that have subscribers; the store itself does not check.
        Returns None for a topic that was never published to.
        """
        queue = self._queues.get(topic)
        if queue is None:
            return None
        with queue.lock:
            drained, queue.messages = queue.messages, []
        return drained

    def pending(self, topic: str) -> list[Message]:
        """Copy of the pending queue, for inspection only."""
        queue = self._queues.get(topic)
        if queue is None:
            return []
        with queue.lock:
            return list(queue.messages)

    def topics(self) -> list[str]:
        with self._lock:
            return list(self._queues)

    def depth(self) -> int:
        """Total number of pending messages across all topics."""
        return sum(len(self.pending(topic)) for topic in self.topics())


class SubscriptionStore:
    """Topic name → subscribers. Duplicates are kept; there is no removal."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: dict[str, tuple[Subscription, ...]] = {}

    def subscribe(self, subscription: Subscription) -> None:
        with self._lock:
            current = self._subscriptions.get(subscription.topic)
            if current is None:
                logger.info(
                    "broker.subscription_topic_created",
                    topic=subscription.topic,
                )
                current = ()
            self._subscriptions[subscription.topic] = current + (subscription,)

    def get(self, topic: str) -> tuple[Subscription, ...]:
        with self._lock:
            return self._subscriptions.get(topic, ())

    def snapshot(self) -> dict[str, tuple[Subscription, ...]]:
        """Stable copy of the whole topic → subscribers mapping."""
        with self._lock:
            return dict(self._subscriptions)

    def count(self) -> int:
        with self._lock:
            return sum(len(subs) for subs in self._subscriptions.values())
