"""CoinGecko crypto fetcher."""
from market_watch.providers.crypto.coingecko.coin_gecko_fetcher import \
    CoinGeckoFetcher

__all__ = ["CoinGeckoFetcher"]
