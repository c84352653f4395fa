"""Periodic driver for dispatch cycles.

Learn: Runs as a background task in the FastAPI lifespan, the same way a
poll worker would. Cycles are serialized: the next one starts one interval
after the previous one *started*, or immediately if it overran.

Shutdown is cooperative. stop() only prevents new cycles and wakes the
loop if it is sleeping; a cycle already in flight finishes its join
barrier (bounded by the per-delivery timeout) instead of being cancelled.

Usage:
    scheduler = SwirlScheduler(broker, interval=1.0)
    task = asyncio.create_task(scheduler.run_loop())
    ...
    scheduler.stop()
    await task
"""

import asyncio
import time

import structlog

logger = structlog.get_logger()


class SwirlScheduler:
    def __init__(self, broker, interval: float = 1.0):
        self.broker = broker
        self.interval = interval
        self.cycles_run = 0
        self.errors = 0
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return not self._stopping.is_set()

    def stop(self) -> None:
        self._stopping.set()

    async def run_loop(self) -> None:
        logger.info("scheduler.started", interval=self.interval)

        while not self._stopping.is_set():
            started = time.monotonic()
            try:
                await self.broker.swirl()
            except Exception:
                logger.exception("scheduler.cycle_failed")
                self.errors += 1
            self.cycles_run += 1

            remaining = self.interval - (time.monotonic() - started)
            if remaining <= 0:
                continue
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                pass

        logger.info("scheduler.stopped", cycles=self.cycles_run, errors=self.errors)
