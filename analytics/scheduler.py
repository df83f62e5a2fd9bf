"""
Periodic task scheduler.

Each registered task fires at its own fixed interval on the running event
loop. A tick that is still running when the next tick of the same task
fires causes that next tick to be skipped, never queued. Failed ticks are
logged and the schedule continues.
"""
import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Set

import structlog

from .errors import SchedulerError
from .metrics import IngestionMetrics

logger = structlog.get_logger()


@dataclass
class ScheduledTask:
    name: str
    interval: float
    func: Callable[[], Awaitable[object]]


class Scheduler:
    """Owns a set of (interval, task) pairs and the loops that fire them."""

    def __init__(self, metrics: Optional[IngestionMetrics] = None):
        self.metrics = metrics or IngestionMetrics()
        self._tasks: Dict[str, ScheduledTask] = {}
        self._in_flight: Set[str] = set()
        self._loops: List[asyncio.Task] = []
        self._ticks: Set[asyncio.Task] = set()
        self.is_running = False

    @property
    def task_names(self) -> List[str]:
        return list(self._tasks)

    def register(self, name: str, interval: float, func: Callable[[], Awaitable[object]]) -> None:
        """Register a periodic task.

        Args:
            name: Unique task name, one per entity kind.
            interval: Seconds between ticks.
            func: Coroutine function invoked on each tick.
        """
        if name in self._tasks:
            raise SchedulerError(f"Task already registered: {name}")
        if interval <= 0:
            raise SchedulerError(f"Interval must be positive: {interval}")
        self._tasks[name] = ScheduledTask(name=name, interval=interval, func=func)
        logger.debug("scheduler_task_registered", task=name, interval=interval)

    def is_in_flight(self, name: str) -> bool:
        return name in self._in_flight

    async def run_once(self, name: str) -> bool:
        """Run one tick of a task now.

        Returns:
            False if the tick was skipped because one is already running,
            True otherwise (whether the tick succeeded or failed).
        """
        task = self._tasks.get(name)
        if task is None:
            raise SchedulerError(f"Unknown task: {name}")

        # Check-and-set without an await in between
        if name in self._in_flight:
            logger.info("scheduler_tick_skipped", task=name)
            self.metrics.record_skipped_tick(name)
            return False
        self._in_flight.add(name)

        try:
            await task.func()
        except Exception as e:
            logger.error("scheduler_tick_failed",
                         task=name,
                         error=str(e),
                         error_type=type(e).__name__)
        finally:
            self._in_flight.discard(name)
        return True

    async def run_all_once(self) -> None:
        """Run one tick of every task concurrently."""
        await asyncio.gather(*(self.run_once(name) for name in self._tasks))

    def start(self) -> None:
        """Start firing every registered task at its interval."""
        if self.is_running:
            return

        self.is_running = True
        for task in self._tasks.values():
            self._loops.append(asyncio.create_task(self._loop(task), name=f"schedule:{task.name}"))
        logger.info("scheduler_started", tasks=self.task_names)

    async def _loop(self, task: ScheduledTask) -> None:
        while self.is_running:
            await asyncio.sleep(task.interval)
            if not self.is_running:
                break
            # Ticks run detached so a slow tick never delays the cadence
            tick = asyncio.create_task(self.run_once(task.name))
            self._ticks.add(tick)
            tick.add_done_callback(self._ticks.discard)

    async def stop(self) -> None:
        """Stop scheduling future ticks and wait for in-flight ticks to finish."""
        if not self.is_running:
            return

        self.is_running = False
        for loop in self._loops:
            loop.cancel()
        await asyncio.gather(*self._loops, return_exceptions=True)
        self._loops.clear()

        if self._ticks:
            await asyncio.gather(*list(self._ticks), return_exceptions=True)
        logger.info("scheduler_stopped")
