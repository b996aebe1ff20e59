"""Fixed-interval background loops."""
import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Fire `callback` every `interval` seconds until stopped.

    Each tick runs as its own task, so a slow tick never delays the schedule;
    overlap handling is the callback's job (see IngestionCycle). stop() only
    cancels future ticks: ticks already running are left to finish and can be
    awaited with wait_idle().
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], Awaitable[object]],
        *,
        run_immediately: bool = True,
    ) -> None:
        self.name = name
        self.interval = interval
        self._callback = callback
        self._run_immediately = run_immediately
        self._stop_event = asyncio.Event()
        self._loop_task: asyncio.Task | None = None
        self._ticks: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self) -> None:
        if self.running:
            logger.debug("%s already running", self.name)
            return
        self._stop_event = asyncio.Event()
        self._loop_task = asyncio.create_task(self._run(), name=f"periodic:{self.name}")
        logger.info("%s started (every %ss)", self.name, self.interval)

    async def stop(self) -> None:
        """Cancel future ticks; in-flight ticks keep running."""
        self._stop_event.set()
        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None
            logger.info("%s stopped", self.name)

    async def wait_idle(self) -> None:
        """Wait for ticks that were already running when stop() was called."""
        if self._ticks:
            await asyncio.gather(*self._ticks, return_exceptions=True)

    async def _run(self) -> None:
        if not self._run_immediately:
            await self._sleep()
        while not self._stop_event.is_set():
            self._spawn_tick()
            await self._sleep()

    async def _sleep(self) -> None:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            pass

    def _spawn_tick(self) -> None:
        task = asyncio.create_task(self._callback(), name=f"tick:{self.name}")
        self._ticks.add(task)
        task.add_done_callback(self._on_tick_done)

    def _on_tick_done(self, task: asyncio.Task) -> None:
        self._ticks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("%s tick failed", self.name, exc_info=exc)
