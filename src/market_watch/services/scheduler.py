"""Ingestion scheduler: periodic fetch, cache replace, broadcast."""
import asyncio
import logging

from market_watch.cache import PriceCache, fallback_assets
from market_watch.db import AssetClass
from market_watch.exceptions import UpstreamError
from market_watch.providers import AssetFetcherABC
from market_watch.services.broadcast import BroadcastHub
from market_watch.services.periodic import PeriodicTask

logger = logging.getLogger(__name__)


class IngestionCycle:
    """One asset class's fetch/cache/broadcast step with an in-flight guard.

    run_once() returns immediately (False) if the previous run is still in
    progress; ticks are never queued.
    """

    def __init__(
        self,
        fetcher: AssetFetcherABC,
        cache: PriceCache,
        hub: BroadcastHub,
        *,
        timeout: float | None = None,
    ) -> None:
        self.asset_class: AssetClass = fetcher.asset_class
        self._fetcher = fetcher
        self._cache = cache
        self._hub = hub
        self._timeout = timeout
        self._lock = asyncio.Lock()

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    async def run_once(self) -> bool:
        """Fetch and publish. Returns True only if a fresh snapshot was stored."""
        if self._lock.locked():
            logger.info("%s update already in progress, skipping", self.asset_class.value)
            return False
        async with self._lock:
            return await self._run()

    async def _run(self) -> bool:
        name = self.asset_class.value
        try:
            if self._timeout:
                assets = await asyncio.wait_for(self._fetcher.fetch_snapshot(), self._timeout)
            else:
                assets = await self._fetcher.fetch_snapshot()
        except (UpstreamError, asyncio.TimeoutError) as exc:
            logger.warning("Error updating %s data: %s", name, exc or type(exc).__name__)
            await self._seed_fallback_if_empty()
            return False
        except Exception:  # pylint: disable=broad-except
            logger.exception("Unexpected error updating %s data", name)
            await self._seed_fallback_if_empty()
            return False

        snapshot = await self._cache.store_snapshot(self.asset_class, assets)
        logger.info("%s data updated: %d assets", name, len(assets))
        self._hub.publish_snapshot(self.asset_class, snapshot.assets)
        return True

    async def _seed_fallback_if_empty(self) -> None:
        """Stale data stays; static data only goes in when nothing is cached."""
        if await self._cache.has_snapshot(self.asset_class):
            return
        logger.info("Using fallback %s data", self.asset_class.value)
        await self._cache.store_snapshot(
            self.asset_class, fallback_assets(self.asset_class), fallback=True
        )


class IngestionScheduler:
    """Drives one independent periodic cycle per asset class."""

    def __init__(
        self,
        fetchers: list[AssetFetcherABC],
        cache: PriceCache,
        hub: BroadcastHub,
        *,
        interval: float = 10.0,
        timeout: float | None = None,
    ) -> None:
        self._cache = cache
        self.cycles: dict[AssetClass, IngestionCycle] = {
            f.asset_class: IngestionCycle(f, cache, hub, timeout=timeout) for f in fetchers
        }
        self._tasks = {
            asset_class: PeriodicTask(f"{asset_class.value}-ingestion", interval, cycle.run_once)
            for asset_class, cycle in self.cycles.items()
        }
        self._fetchers = fetchers

    @property
    def running(self) -> bool:
        return any(t.running for t in self._tasks.values())

    def start(self) -> None:
        """Start all cycles; each runs immediately and then every interval."""
        logger.info("Starting market data ingestion for %s", ", ".join(c.value for c in self.cycles))
        for task in self._tasks.values():
            task.start()

    async def stop(self) -> None:
        """Cancel future ticks. In-flight fetches are not interrupted."""
        for task in self._tasks.values():
            await task.stop()

    async def wait_idle(self) -> None:
        for task in self._tasks.values():
            await task.wait_idle()

    async def refresh(self, asset_class: AssetClass) -> bool:
        """Run one cycle now (subject to the in-flight guard)."""
        cycle = self.cycles.get(asset_class)
        if cycle is None:
            return False
        return await cycle.run_once()

    async def close(self) -> None:
        await self.stop()
        await self.wait_idle()
        for fetcher in self._fetchers:
            try:
                await fetcher.close()
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Error closing fetcher %s: %s", type(fetcher).__name__, exc)
