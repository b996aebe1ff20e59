"""Read path over the price cache for HTTP controllers and the alert engine."""
import asyncio
import logging

import httpx

from market_watch.cache import PriceCache
from market_watch.db import AssetClass
from market_watch.exceptions import UpstreamError
from market_watch.providers import AssetFetcherABC
from market_watch.schemas import (CachedAsset, MarketHealth, MarketOverview,
                                  MarketSnapshot)

logger = logging.getLogger(__name__)

# Failures from a direct single-asset fetch that degrade to "unknown" instead of raising.
_FETCH_EXCEPTIONS: tuple[type[Exception], ...] = (
    UpstreamError,
    httpx.HTTPError,
    asyncio.TimeoutError,
    TimeoutError,
    ValueError,
)


class MarketService:
    """Cache-first market reads.

    Never raises on a missing or stale cache: snapshots come from the cache or
    the static fallback, and single lookups fall through to the class's
    fetcher on a miss.
    """

    def __init__(
        self,
        cache: PriceCache,
        fetchers: dict[AssetClass, AssetFetcherABC],
        *,
        update_interval_seconds: float = 10.0,
        overview_limit: int = 5,
    ) -> None:
        self._cache = cache
        self._fetchers = fetchers
        self._update_interval = update_interval_seconds
        self._overview_limit = overview_limit

    async def get_snapshot(self, asset_class: AssetClass, limit: int = 50) -> MarketSnapshot:
        return await self._cache.get_or_fallback(asset_class, limit)

    async def get_single(self, asset_class: AssetClass, asset_id: str) -> CachedAsset | None:
        """Cached asset by id or symbol; on a miss, ask upstream directly."""
        cached = await self._cache.find(asset_class, asset_id)
        if cached is not None:
            return cached
        return await self._fetch_single(asset_class, asset_id)

    async def _fetch_single(self, asset_class: AssetClass, asset_id: str) -> CachedAsset | None:
        fetcher = self._fetchers.get(asset_class)
        if fetcher is None:
            return None
        try:
            return await fetcher.fetch_single(asset_id)
        except _FETCH_EXCEPTIONS as exc:
            logger.warning(
                "Direct %s lookup for %s failed: %s", asset_class.value, asset_id, exc
            )
            return None

    async def resolve_price(self, asset_class: AssetClass, asset_id: str) -> float | None:
        """Current price for evaluation, or None if it cannot be resolved this tick.

        Static fallback prices are never used; they fall through to upstream.
        """
        asset = await self._cache.find(asset_class, asset_id, live_only=True)
        if asset is None:
            asset = await self._fetch_single(asset_class, asset_id)
        if asset is None or asset.price <= 0:
            return None
        return asset.price

    async def search(
        self, asset_class: AssetClass, query: str, limit: int = 10
    ) -> list[CachedAsset]:
        """Case-insensitive substring match on id, symbol and name."""
        needle = query.strip().lower()
        if not needle:
            return []
        snapshot = await self._cache.load_snapshot(asset_class)
        if snapshot is not None and snapshot.assets:
            assets = snapshot.assets
        else:
            assets = (await self._cache.get_or_fallback(asset_class, limit=10_000)).data
        matches = [
            a
            for a in assets
            if needle in a.id.lower() or needle in a.symbol.lower() or needle in a.name.lower()
        ]
        return matches[: max(limit, 0)]

    async def get_overview(self) -> MarketOverview:
        crypto, equity = await asyncio.gather(
            self.get_snapshot(AssetClass.CRYPTO, self._overview_limit),
            self.get_snapshot(AssetClass.EQUITY, self._overview_limit),
        )
        updates = [u for u in (crypto.last_update, equity.last_update) if u is not None]
        return MarketOverview(
            crypto=crypto.data,
            equity=equity.data,
            last_update=max(updates) if updates else None,
        )

    async def health(self) -> MarketHealth:
        last_update: dict[AssetClass, object] = {}
        for asset_class in AssetClass:
            snapshot = await self._cache.load_snapshot(asset_class)
            last_update[asset_class] = snapshot.last_update if snapshot else None
        return MarketHealth(
            status="active",
            last_update=last_update,
            data_available=any(v is not None for v in last_update.values()),
            update_interval_seconds=self._update_interval,
        )
