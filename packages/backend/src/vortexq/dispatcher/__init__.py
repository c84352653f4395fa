"""Dispatch engine — the swirl cycle and its periodic driver.

Learn: Dispatcher.run_cycle() is a single blocking "drain and fan out"
round. SwirlScheduler calls it once per tick and owns serialization and
graceful stop; the dispatcher itself is stateless between cycles.
"""

from vortexq.dispatcher.scheduler import SwirlScheduler
from vortexq.dispatcher.swirl import CycleReport, DispatchError, Dispatcher

__all__ = ["CycleReport", "DispatchError", "Dispatcher", "SwirlScheduler"]
