"""Finnhub quote source (quote + company profile per symbol)."""
import asyncio
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from market_watch.db import AssetClass
from market_watch.exceptions import UpstreamError
from market_watch.providers.core import round2
from market_watch.providers.equity.finnhub.models import (FinnhubProfile,
                                                          FinnhubQuote)
from market_watch.providers.equity.quote_source_abc import QuoteSourceABC
from market_watch.providers.equity.symbols import (LOGO_BASE_URL,
                                                   equity_logo_url,
                                                   equity_name)
from market_watch.schemas import CachedAsset
from market_watch.utils import parse_timestamp


class FinnhubQuoteSource(QuoteSourceABC):
    """Equity quotes via Finnhub REST.

    Each symbol costs two requests (/quote and /stock/profile2), issued in
    parallel. The free tier allows 60 requests per minute, which is why the
    batched fetcher paces symbols.
    """

    name = "finnhub"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://finnhub.io/api/v1",
        timeout: float = 5.0,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout, transport=transport
        )

    async def fetch_quote(self, symbol: str) -> CachedAsset | None:
        quote_data, profile_data = await asyncio.gather(
            self._get("/quote", symbol), self._get("/stock/profile2", symbol)
        )
        try:
            quote = FinnhubQuote.model_validate(quote_data)
            profile = FinnhubProfile.model_validate(profile_data or {})
        except ValidationError as exc:
            raise UpstreamError(f"Finnhub returned malformed data for {symbol}") from exc

        if not quote.c or quote.c <= 0:
            return None

        return CachedAsset(
            id=symbol,
            asset_class=AssetClass.EQUITY,
            name=profile.name or equity_name(symbol),
            symbol=symbol,
            price=quote.c,
            change_24h_pct=round2(quote.dp),
            # Finnhub reports market cap in millions.
            market_cap=profile.marketCapitalization * 1_000_000
            if profile.marketCapitalization
            else None,
            volume_24h=quote.v,
            image_url=self._logo_url(symbol, profile.weburl),
            last_refreshed_at=parse_timestamp(quote.t or None),
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, symbol: str) -> dict:
        try:
            response = await self._client.get(
                path, params={"symbol": symbol, "token": self._api_key}
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Finnhub {path} failed for {symbol}: {exc}") from exc
        except ValueError as exc:
            raise UpstreamError(f"Finnhub {path} returned invalid JSON for {symbol}") from exc

    @staticmethod
    def _logo_url(symbol: str, weburl: str | None) -> str:
        if weburl:
            host = urlparse(weburl).hostname
            if host:
                return f"{LOGO_BASE_URL}/{host.removeprefix('www.')}"
        return equity_logo_url(symbol)
