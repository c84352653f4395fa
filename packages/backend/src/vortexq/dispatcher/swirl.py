"""Dispatch cycle ("swirl") — drain subscribed topics and fan out.

Learn: One run_cycle() call does:
1. Snapshot topic → subscribers from the SubscriptionStore
2. Drain each snapshotted topic from the MessageStore (atomic swap)
3. Build the message × subscriber cross product, one delivery unit per pair
4. Run every unit as a concurrent task and wait for all of them
5. Report; individual failures never fail the cycle

Key design decisions:
- Topics without subscribers are never visited, so their messages stay
  queued until someone subscribes. That is policy, not an oversight.
- Drain clears unconditionally (at-most-once). A message whose every
  delivery failed is gone after the cycle.
- A semaphore bounds parallel outbound requests within one cycle.
- The cycle is a barrier: it returns only after every unit finished, so
  its duration is bounded by the slowest delivery (the sender timeout).
- The dispatcher does not stop two cycles from overlapping. Serializing
  calls is the scheduler's job.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Optional

import structlog

from vortexq.broker.models import Message, Subscription
from vortexq.broker.store import MessageStore, SubscriptionStore
from vortexq.broker.webhook import DeliveryResult, WebhookSender
from vortexq.metrics import BrokerMetrics

logger = structlog.get_logger()

DEFAULT_MAX_CONCURRENT = 64


class DispatchError(Exception):
    """A cycle could not run at all. Delivery failures never raise this."""


@dataclass
class CycleReport:
    """What one dispatch cycle did."""

    topics_drained: int = 0
    messages_drained: int = 0
    attempted: int = 0
    delivered: int = 0
    failed: int = 0
    duration_seconds: float = 0.0
    failures: list[DeliveryResult] = field(default_factory=list)


class Dispatcher:
    def __init__(
        self,
        messages: MessageStore,
        subscriptions: SubscriptionStore,
        sender: Optional[WebhookSender] = None,
        *,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        metrics: Optional[BrokerMetrics] = None,
    ):
        self.messages = messages
        self.subscriptions = subscriptions
        self.sender = sender or WebhookSender()
        self.max_concurrent = max_concurrent
        self.metrics = metrics

    def collect(self, report: CycleReport) -> list[tuple[Message, Subscription]]:
        """Drain every subscribed topic and return the delivery units."""
        units: list[tuple[Message, Subscription]] = []
        for topic, subscribers in self.subscriptions.snapshot().items():
            if not subscribers:
                continue
            drained = self.messages.drain(topic)
            if not drained:
                continue
            report.topics_drained += 1
            report.messages_drained += len(drained)
            units.extend(
                (message, subscriber)
                for message in drained
                for subscriber in subscribers
            )
        return units

    async def _deliver(
        self,
        semaphore: asyncio.Semaphore,
        message: Message,
        subscriber: Subscription,
    ) -> DeliveryResult:
        async with semaphore:
            logger.debug(
                "dispatch.sending",
                message_id=message.id,
                topic=message.topic,
                endpoint=subscriber.endpoint,
            )
            return await self.sender.deliver(message, subscriber.endpoint)

    async def run_cycle(self) -> CycleReport:
        started = time.monotonic()
        report = CycleReport()

        try:
            units = self.collect(report)
        except Exception as e:
            raise DispatchError(f"failed to drain topics: {e}") from e

        if units:
            semaphore = asyncio.Semaphore(self.max_concurrent)
            outcomes = await asyncio.gather(
                *(self._deliver(semaphore, m, s) for m, s in units),
                return_exceptions=True,
            )
            for (message, subscriber), outcome in zip(units, outcomes):
                self._record(report, message, subscriber, outcome)

        report.duration_seconds = time.monotonic() - started
        if self.metrics:
            self.metrics.cycles.inc()
            self.metrics.cycle_duration.observe(report.duration_seconds)
        if report.attempted:
            logger.info(
                "dispatch.cycle_completed",
                topics=report.topics_drained,
                messages=report.messages_drained,
                attempted=report.attempted,
                delivered=report.delivered,
                failed=report.failed,
                duration=round(report.duration_seconds, 3),
            )
        return report

    def _record(
        self,
        report: CycleReport,
        message: Message,
        subscriber: Subscription,
        outcome,
    ) -> None:
        report.attempted += 1
        if isinstance(outcome, BaseException):
            # Anything the sender did not classify still only fails this unit.
            logger.error(
                "dispatch.delivery_crashed",
                message_id=message.id,
                endpoint=subscriber.endpoint,
                exc_info=outcome,
            )
            report.failed += 1
            label = "unexpected_error"
        elif outcome.ok:
            report.delivered += 1
            label = outcome.outcome
        else:
            report.failed += 1
            report.failures.append(outcome)
            label = outcome.outcome
        if self.metrics:
            self.metrics.deliveries.labels(outcome=label).inc()
