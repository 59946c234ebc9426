"""Repeating timer on the asyncio event loop."""
import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class IntervalScheduler:
    """
    Calls a function every `interval_seconds`, starting one interval from now.

    Each tick runs in a worker thread so a blocking callback does not stall
    the event loop. The next interval starts only after the tick returns.
    """

    def __init__(self, callback: Callable[[], object], interval_seconds: float):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.callback = callback
        self.interval_seconds = interval_seconds
        self.ticks = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """
        Start ticking on the running event loop.

        Returns:
            The task driving the schedule
        """
        if self.running:
            return self._task
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Scheduler started with a {self.interval_seconds}s interval")
        return self._task

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def tick(self) -> None:
        """Run the callback once, logging instead of raising on failure."""
        self.ticks += 1
        try:
            self.callback()
        except Exception as e:
            logger.error(
                f"Scheduled task failed: {e}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await asyncio.to_thread(self.tick)
