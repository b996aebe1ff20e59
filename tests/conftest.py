import pytest

from market_watch.cache import MemoryCacheBackend, PriceCache
from market_watch.db import AssetClass, SessionFactory
from market_watch.exceptions import UpstreamError
from market_watch.providers import AssetFetcherABC
from market_watch.schemas import CachedAsset
from market_watch.services.alert_store import AlertRepository


def make_asset(
    asset_id: str,
    price: float,
    *,
    asset_class: AssetClass = AssetClass.CRYPTO,
    market_cap: float | None = None,
    name: str | None = None,
    symbol: str | None = None,
) -> CachedAsset:
    return CachedAsset(
        id=asset_id,
        asset_class=asset_class,
        name=name or asset_id.title(),
        symbol=symbol or asset_id.upper()[:4],
        price=price,
        market_cap=market_cap,
    )


class FakeFetcher(AssetFetcherABC):
    """Scripted fetcher: pops one result per fetch_snapshot call.

    A result may be a list of assets or an exception instance to raise.
    """

    def __init__(self, asset_class: AssetClass, results=None, singles=None) -> None:
        self.asset_class = asset_class
        self.results = list(results or [])
        self.singles = dict(singles or {})
        self.snapshot_calls = 0
        self.single_calls: list[str] = []
        self.closed = False

    async def fetch_snapshot(self) -> list[CachedAsset]:
        self.snapshot_calls += 1
        if not self.results:
            raise UpstreamError("no scripted result")
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def fetch_single(self, asset_id: str) -> CachedAsset | None:
        self.single_calls.append(asset_id)
        result = self.singles.get(asset_id)
        if isinstance(result, Exception):
            raise result
        return result

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def backend() -> MemoryCacheBackend:
    return MemoryCacheBackend()


@pytest.fixture
def cache(backend) -> PriceCache:
    return PriceCache(backend, ttl_seconds=600)


@pytest.fixture
def session_factory():
    factory = SessionFactory.from_url("sqlite://")
    factory.init_db()
    yield factory
    factory.dispose()


@pytest.fixture
def repo(session_factory) -> AlertRepository:
    return AlertRepository(session_factory)
