"""Notification Dispatcher: bounded queue drained by a fixed worker pool."""
import asyncio
import logging

from market_watch.services.notifications.channel_abc import (
    NotificationChannelABC, NotificationJob)

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Delivers each triggered alert once through its enabled channels.

    submit() applies backpressure: when the queue is full the caller waits
    for a free slot. Channel failures are logged per channel and never
    propagate; there is no automatic retry.
    """

    def __init__(
        self,
        channels: list[NotificationChannelABC],
        *,
        queue_size: int = 100,
        workers: int = 4,
    ) -> None:
        self._channels = channels
        self._queue: asyncio.Queue[NotificationJob] = asyncio.Queue(maxsize=max(1, queue_size))
        self._worker_count = max(1, workers)
        self._workers: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not w.done() for w in self._workers)

    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self.running:
            return
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"notification-worker-{i}")
            for i in range(self._worker_count)
        ]
        logger.info("Notification dispatcher started with %d workers", self._worker_count)

    async def stop(self, drain_timeout: float | None = 10.0) -> None:
        """Deliver what is queued (bounded by drain_timeout), then stop workers."""
        if self.running:
            try:
                await asyncio.wait_for(self.drain(), drain_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "Notification queue not drained; %d jobs dropped", self._queue.qsize()
                )
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

    async def submit(self, job: NotificationJob) -> None:
        await self._queue.put(job)

    async def drain(self) -> None:
        """Wait until every submitted job has been delivered."""
        await self._queue.join()

    async def dispatch(self, job: NotificationJob) -> dict[str, bool]:
        """Run every enabled channel for one job; returns channel -> delivered."""
        results: dict[str, bool] = {}
        alert = job.alert
        for channel in self._channels:
            if not channel.enabled_for(alert):
                continue
            try:
                await channel.send(job)
                results[channel.name] = True
            except Exception:  # pylint: disable=broad-except
                logger.exception(
                    "%s notification failed for alert %s (%s)",
                    channel.name,
                    alert.id,
                    alert.owner_id,
                )
                results[channel.name] = False
        return results

    async def _worker(self, index: int) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self.dispatch(job)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Notification worker %d failed on alert %s", index, job.alert.id)
            finally:
                self._queue.task_done()
