"""Finnhub equity quote source."""
from market_watch.providers.equity.finnhub.finnhub_source import \
    FinnhubQuoteSource

__all__ = ["FinnhubQuoteSource"]
