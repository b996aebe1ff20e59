"""Price cache: latest snapshot per asset class with an always-answering read path."""
import asyncio
import logging
from collections.abc import Awaitable, Callable

from pydantic import ValidationError

from market_watch.cache.backends import CacheBackend
from market_watch.cache.fallback import fallback_assets
from market_watch.db import AssetClass
from market_watch.schemas import CachedAsset, CachedSnapshot, MarketSnapshot
from market_watch.utils import utcnow

logger = logging.getLogger(__name__)

KEY_PREFIX = "market:snapshot:"

Refresher = Callable[[AssetClass], Awaitable[object]]


def snapshot_key(asset_class: AssetClass) -> str:
    return f"{KEY_PREFIX}{asset_class.value}"


class PriceCache:
    """Holds the latest snapshot of each asset class.

    Written only by the ingestion scheduler (store_snapshot). Readers use
    get_or_fallback, which never raises and never waits on upstream I/O: a
    miss returns the static dataset and schedules a background refresh.
    """

    def __init__(
        self,
        backend: CacheBackend,
        ttl_seconds: int = 600,
        refresher: Refresher | None = None,
    ) -> None:
        self._backend = backend
        self._ttl = ttl_seconds
        self._refresher = refresher
        self._refresh_tasks: set[asyncio.Task] = set()

    def set_refresher(self, refresher: Refresher | None) -> None:
        """Install the callback used for background refresh on a miss."""
        self._refresher = refresher

    # ---- Raw key/value ----
    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        return await self._backend.set(key, value, ttl if ttl is not None else self._ttl)

    async def get(self, key: str) -> str | None:
        return await self._backend.get(key)

    # ---- Snapshots ----
    async def store_snapshot(
        self, asset_class: AssetClass, assets: list[CachedAsset], *, fallback: bool = False
    ) -> CachedSnapshot:
        """Replace the snapshot for an asset class in one write."""
        snapshot = CachedSnapshot(assets=assets, last_update=utcnow(), fallback=fallback)
        await self.set(snapshot_key(asset_class), snapshot.model_dump_json())
        return snapshot

    async def load_snapshot(self, asset_class: AssetClass) -> CachedSnapshot | None:
        """Return the cached snapshot, or None on miss or unreadable entry."""
        raw = await self.get(snapshot_key(asset_class))
        if raw is None:
            return None
        try:
            return CachedSnapshot.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding unreadable %s snapshot: %s", asset_class.value, exc)
            return None

    async def has_snapshot(self, asset_class: AssetClass) -> bool:
        return await self.load_snapshot(asset_class) is not None

    async def get_or_fallback(self, asset_class: AssetClass, limit: int) -> MarketSnapshot:
        """Cached top `limit` assets, or the static dataset on a miss.

        A miss also kicks off a best-effort background refresh.
        """
        snapshot = await self.load_snapshot(asset_class)
        if snapshot is not None and snapshot.assets:
            return MarketSnapshot(
                data=snapshot.assets[: max(limit, 0)],
                last_update=snapshot.last_update,
                cached=True,
            )
        logger.info("Price cache miss for %s; serving fallback", asset_class.value)
        self._schedule_refresh(asset_class)
        return MarketSnapshot(
            data=fallback_assets(asset_class)[: max(limit, 0)],
            last_update=None,
            cached=False,
        )

    async def find(
        self, asset_class: AssetClass, asset_id: str, *, live_only: bool = False
    ) -> CachedAsset | None:
        """Look up one asset by id or symbol in the cached snapshot only.

        With live_only, a snapshot seeded from static data counts as a miss.
        """
        snapshot = await self.load_snapshot(asset_class)
        if snapshot is None or (live_only and snapshot.fallback):
            return None
        wanted = asset_id.lower()
        for asset in snapshot.assets:
            if asset.id.lower() == wanted or asset.symbol.lower() == wanted:
                return asset
        return None

    # ---- Background refresh ----
    def _schedule_refresh(self, asset_class: AssetClass) -> None:
        if self._refresher is None:
            return
        try:
            task = asyncio.get_running_loop().create_task(self._refresh(asset_class))
        except RuntimeError:
            logger.debug("No running loop; skipping background refresh")
            return
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_tasks.discard)

    async def _refresh(self, asset_class: AssetClass) -> None:
        try:
            await self._refresher(asset_class)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Background refresh for %s failed", asset_class.value)

    async def wait_for_refreshes(self) -> None:
        """Await any background refreshes still running."""
        if self._refresh_tasks:
            await asyncio.gather(*self._refresh_tasks, return_exceptions=True)

    async def close(self) -> None:
        await self.wait_for_refreshes()
        await self._backend.close()
