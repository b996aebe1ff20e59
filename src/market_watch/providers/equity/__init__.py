"""Equity fetchers and quote sources."""
from market_watch.providers.equity.batched_fetcher import BatchedEquityFetcher
from market_watch.providers.equity.finnhub import FinnhubQuoteSource
from market_watch.providers.equity.quote_source_abc import QuoteSourceABC
from market_watch.providers.equity.yfinance import YFinanceQuoteSource

__all__ = [
    "BatchedEquityFetcher",
    "FinnhubQuoteSource",
    "QuoteSourceABC",
    "YFinanceQuoteSource",
]
