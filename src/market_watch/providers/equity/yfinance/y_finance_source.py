"""Yahoo Finance quote source for equities."""
import asyncio

import yfinance as yf

from market_watch.db import AssetClass
from market_watch.exceptions import UpstreamError
from market_watch.providers.core import optional_float, round2
from market_watch.providers.equity.quote_source_abc import QuoteSourceABC
from market_watch.providers.equity.symbols import (equity_logo_url,
                                                   equity_name)
from market_watch.schemas import CachedAsset
from market_watch.utils import utcnow


class YFinanceQuoteSource(QuoteSourceABC):
    """Equity quotes via the yfinance library.

    No API key required. yfinance is synchronous, so each lookup runs in a
    worker thread bounded by `timeout`.
    """

    name = "yfinance"

    def __init__(self, timeout: float = 5.0) -> None:
        self._timeout = timeout

    async def fetch_quote(self, symbol: str) -> CachedAsset | None:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._fetch_quote_sync, symbol), self._timeout
            )
        except asyncio.TimeoutError as exc:
            raise UpstreamError(f"yfinance timed out for {symbol}") from exc

    def _fetch_quote_sync(self, symbol: str) -> CachedAsset | None:
        """Fetch a single quote synchronously (run in thread)."""
        ticker = yf.Ticker(symbol)
        try:
            info = ticker.fast_info
            price = optional_float(info.get("lastPrice"))
            previous = optional_float(info.get("previousClose"))
            volume = optional_float(info.get("lastVolume"))
            market_cap = optional_float(info.get("marketCap"))
        except Exception as exc:  # pylint: disable=broad-except
            raise UpstreamError(f"Failed to fetch quote for '{symbol}': {exc}") from exc

        if price is None or price <= 0:
            return None
        change = (price - previous) / previous * 100 if previous else None
        return CachedAsset(
            id=symbol,
            asset_class=AssetClass.EQUITY,
            name=equity_name(symbol),
            symbol=symbol,
            price=round2(price),
            change_24h_pct=round2(change),
            market_cap=market_cap,
            volume_24h=volume,
            image_url=equity_logo_url(symbol),
            last_refreshed_at=utcnow(),
        )
