import asyncio

import httpx
import pytest

from market_watch.db import AssetClass
from market_watch.exceptions import InsufficientDataError, UpstreamError
from market_watch.providers import (BatchedEquityFetcher, CoinGeckoFetcher,
                                    FinnhubQuoteSource, QuoteSourceABC)
from market_watch.schemas import CachedAsset

COINGECKO_ROWS = [
    {
        "id": "bitcoin",
        "symbol": "btc",
        "name": "Bitcoin",
        "current_price": 43250.0,
        "price_change_percentage_24h": 2.4567,
        "market_cap": 846e9,
        "total_volume": 25e9,
        "image": "https://example.test/btc.png",
    },
    {
        "id": "ethereum",
        "symbol": "eth",
        "name": "Ethereum",
        "current_price": 2280.5,
        "price_change_percentage_24h": -1.2,
        "market_cap": 274e9,
        "total_volume": 12e9,
        "image": None,
    },
    {"id": "deadcoin", "symbol": "dead", "name": "Dead", "current_price": None},
]


@pytest.mark.asyncio
async def test_coingecko_snapshot_maps_rows_and_sends_key():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=COINGECKO_ROWS)

    async with CoinGeckoFetcher(
        api_key="demo-key", page_size=250, transport=httpx.MockTransport(handler)
    ) as fetcher:
        assets = await fetcher.fetch_snapshot()

    assert [a.id for a in assets] == ["bitcoin", "ethereum"]
    btc = assets[0]
    assert btc.asset_class == AssetClass.CRYPTO
    assert btc.symbol == "BTC"
    assert btc.change_24h_pct == 2.46
    assert btc.market_cap == 846e9

    request = seen[0]
    assert request.url.path.endswith("/coins/markets")
    assert request.url.params["order"] == "market_cap_desc"
    assert request.url.params["per_page"] == "250"
    assert request.url.params["price_change_percentage"] == "24h"
    assert request.headers["x-cg-demo-api-key"] == "demo-key"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(429, json={"error": "rate limited"}),
        httpx.Response(200, json={"not": "a list"}),
        httpx.Response(200, content=b"<html>"),
        httpx.Response(200, json=[]),
    ],
)
async def test_coingecko_bad_responses_fail_the_tick(response):
    fetcher = CoinGeckoFetcher(transport=httpx.MockTransport(lambda request: response))
    with pytest.raises(UpstreamError):
        await fetcher.fetch_snapshot()
    await fetcher.close()


@pytest.mark.asyncio
async def test_coingecko_network_error_is_upstream_error():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    fetcher = CoinGeckoFetcher(transport=httpx.MockTransport(handler))
    with pytest.raises(UpstreamError):
        await fetcher.fetch_snapshot()
    await fetcher.close()


@pytest.mark.asyncio
async def test_coingecko_single_lookup_uses_ids_param():
    def handler(request):
        assert request.url.params["ids"] == "bitcoin"
        return httpx.Response(200, json=COINGECKO_ROWS[:1])

    fetcher = CoinGeckoFetcher(transport=httpx.MockTransport(handler))
    asset = await fetcher.fetch_single(" Bitcoin ")
    await fetcher.close()

    assert asset is not None
    assert asset.price == 43250.0


@pytest.mark.asyncio
async def test_finnhub_quote_combines_quote_and_profile():
    def handler(request):
        assert request.url.params["token"] == "fh-key"
        if request.url.path.endswith("/quote"):
            return httpx.Response(200, json={"c": 178.25, "dp": 2.346, "v": 1000, "t": 1700000000})
        return httpx.Response(
            200,
            json={
                "name": "Apple Inc",
                "marketCapitalization": 2800000.0,
                "weburl": "https://www.apple.com/",
            },
        )

    source = FinnhubQuoteSource("fh-key", transport=httpx.MockTransport(handler))
    asset = await source.fetch_quote("AAPL")
    await source.close()

    assert asset.price == 178.25
    assert asset.change_24h_pct == 2.35
    assert asset.market_cap == 2.8e12
    assert asset.image_url == "https://logo.clearbit.com/apple.com"
    assert asset.name == "Apple Inc"


@pytest.mark.asyncio
async def test_finnhub_zero_price_is_unusable():
    def handler(request):
        if request.url.path.endswith("/quote"):
            return httpx.Response(200, json={"c": 0, "dp": None})
        return httpx.Response(200, json={})

    source = FinnhubQuoteSource("fh-key", transport=httpx.MockTransport(handler))
    assert await source.fetch_quote("ZZZZ") is None
    await source.close()


@pytest.mark.asyncio
async def test_finnhub_http_error_raises_upstream_error():
    source = FinnhubQuoteSource(
        "fh-key", transport=httpx.MockTransport(lambda r: httpx.Response(429))
    )
    with pytest.raises(UpstreamError):
        await source.fetch_quote("AAPL")
    await source.close()


class RecordingQuotes(QuoteSourceABC):
    def __init__(self, failing=(), missing=()) -> None:
        self.failing = set(failing)
        self.missing = set(missing)
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_quote(self, symbol):
        self.calls.append(symbol)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if symbol in self.failing:
                raise UpstreamError(f"{symbol} failed")
            if symbol in self.missing:
                return None
            return CachedAsset(
                id=symbol,
                asset_class=AssetClass.EQUITY,
                name=symbol,
                symbol=symbol,
                price=10.0,
                market_cap=float(len(self.calls)),
            )
        finally:
            self.in_flight -= 1


def test_batches_split_deduplicated_symbols():
    fetcher = BatchedEquityFetcher(
        RecordingQuotes(), ["aapl", "MSFT", "AAPL", " nvda ", "TSLA", "AMZN", "META"], batch_size=5
    )
    assert fetcher.symbols == ("AAPL", "MSFT", "NVDA", "TSLA", "AMZN", "META")
    assert fetcher.batches() == [("AAPL", "MSFT", "NVDA", "TSLA", "AMZN"), ("META",)]
    assert fetcher.min_resolved == 3


@pytest.mark.asyncio
async def test_batched_fetch_drops_failures_and_sorts(monkeypatch):
    sleeps: list[float] = []
    real_sleep = asyncio.sleep

    async def fake_sleep(delay, *args, **kwargs):
        if delay:
            sleeps.append(delay)
        await real_sleep(0)

    monkeypatch.setattr("market_watch.providers.equity.batched_fetcher.asyncio.sleep", fake_sleep)

    symbols = [f"S{i}" for i in range(12)]
    source = RecordingQuotes(failing={"S1"}, missing={"S7"})
    fetcher = BatchedEquityFetcher(source, symbols, batch_size=5, batch_delay=1.5)

    assets = await fetcher.fetch_snapshot()

    assert len(assets) == 10
    assert {a.id for a in assets}.isdisjoint({"S1", "S7"})
    caps = [a.market_cap for a in assets]
    assert caps == sorted(caps, reverse=True)
    assert sleeps == [1.5, 1.5]
    assert source.max_in_flight <= 5


@pytest.mark.asyncio
async def test_batched_fetch_below_minimum_raises():
    symbols = [f"S{i}" for i in range(20)]
    source = RecordingQuotes(missing=set(symbols[8:]))
    fetcher = BatchedEquityFetcher(source, symbols, batch_size=5, batch_delay=0)

    with pytest.raises(InsufficientDataError) as info:
        await fetcher.fetch_snapshot()
    assert info.value.resolved == 8
    assert info.value.required == 10
