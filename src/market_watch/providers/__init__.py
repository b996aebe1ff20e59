"""Upstream fetchers for the crypto and equity ingestion cycles.

- CoinGeckoFetcher: one bulk call for the top coins by market cap
- BatchedEquityFetcher: per-symbol quotes paced in batches, backed by a
  QuoteSourceABC (FinnhubQuoteSource or YFinanceQuoteSource)

Example:
    async with CoinGeckoFetcher() as fetcher:
        assets = await fetcher.fetch_snapshot()
        print(f"{assets[0].symbol}: ${assets[0].price}")
"""
from market_watch.providers.core import AssetFetcherABC
from market_watch.providers.crypto import CoinGeckoFetcher
from market_watch.providers.equity import (BatchedEquityFetcher,
                                           FinnhubQuoteSource,
                                           QuoteSourceABC,
                                           YFinanceQuoteSource)

__all__ = [
    "AssetFetcherABC",
    "BatchedEquityFetcher",
    "CoinGeckoFetcher",
    "FinnhubQuoteSource",
    "QuoteSourceABC",
    "YFinanceQuoteSource",
]
