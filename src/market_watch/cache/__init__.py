"""Price cache: TTL backends, static fallback data and the snapshot store."""
from market_watch.cache.backends import (CacheBackend, MemoryCacheBackend,
                                         RedisCacheBackend,
                                         create_cache_backend)
from market_watch.cache.fallback import fallback_assets
from market_watch.cache.price_cache import PriceCache, snapshot_key

__all__ = [
    "CacheBackend",
    "MemoryCacheBackend",
    "PriceCache",
    "RedisCacheBackend",
    "create_cache_backend",
    "fallback_assets",
    "snapshot_key",
]
