"""Base class for the feed's fixed-interval background tasks."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class PeriodicTask(ABC):
    """A coroutine run every `interval` seconds for the life of the process.

    The simulation and broadcast engines each run as their own PeriodicTask.
    They never talk to each other directly; they only share the catalog and
    the registry.

    Lifecycle:
        task = SimulationEngine(catalog, interval=2.0)
        await task.start()
        # ... app runs ...
        await task.stop()
    """

    name: str = "periodic-task"

    def __init__(self, interval: float) -> None:
        if interval <= 0:
            raise ValueError(f"{type(self).__name__} interval must be positive, got {interval}")
        self._interval = interval
        self._task: asyncio.Task | None = None

    @abstractmethod
    async def tick(self) -> object:
        """Run one iteration. Must not hold a lock across an await."""

    async def start(self) -> None:
        """Schedule the loop. The first tick runs one interval after start.

        Calling start() on a running task is a no-op.
        """
        if self.running:
            return
        self._task = asyncio.create_task(self._run_loop(), name=self.name)
        logger.info("%s started: %.2fs interval", self.name, self._interval)

    async def stop(self) -> None:
        """Cancel the loop. Safe to call multiple times."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("%s stopped", self.name)

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run_loop(self) -> None:
        """Sleep, tick, repeat. A failing tick is logged and the loop goes on."""
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.tick()
            except Exception:
                logger.exception("%s tick failed", self.name)
