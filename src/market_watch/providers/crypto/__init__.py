"""Cryptocurrency fetchers."""
from market_watch.providers.crypto.coingecko import CoinGeckoFetcher

__all__ = ["CoinGeckoFetcher"]
