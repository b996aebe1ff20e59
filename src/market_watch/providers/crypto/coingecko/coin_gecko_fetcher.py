"""CoinGecko fetcher for the crypto ingestion cycle."""
import logging

import httpx
from pydantic import ValidationError

from market_watch.db import AssetClass
from market_watch.exceptions import InsufficientDataError, UpstreamError
from market_watch.providers.core import AssetFetcherABC, round2
from market_watch.providers.core.utils import normalize_crypto_id
from market_watch.providers.crypto.coingecko.models import (
    CoinGeckoMarketItem, CoinGeckoMarketsParams)
from market_watch.schemas import CachedAsset
from market_watch.utils import utcnow

logger = logging.getLogger(__name__)


class CoinGeckoFetcher(AssetFetcherABC):
    """Crypto snapshot via one bulk /coins/markets call.

    Uses CoinGecko IDs as asset ids (e.g., "bitcoin", "ethereum", "solana").
    Any transport error, non-2xx status or malformed body fails the whole tick.
    """

    BASE_URL = "https://api.coingecko.com/api/v3"
    PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"

    asset_class = AssetClass.CRYPTO

    def __init__(
        self,
        api_key: str | None = None,
        use_pro_api: bool = False,
        page_size: int = 250,
        timeout: float = 10.0,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the CoinGecko fetcher.

        Args:
            api_key: CoinGecko API key (demo or pro).
            use_pro_api: Whether to use the Pro API endpoint and header.
            page_size: Number of coins per snapshot (top N by market cap).
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests).
        """
        self._api_key = api_key or None
        self._use_pro_api = use_pro_api
        self._page_size = page_size

        headers: dict[str, str] = {"Accept": "application/json"}
        if self._api_key:
            header = "x-cg-pro-api-key" if use_pro_api else "x-cg-demo-api-key"
            headers[header] = self._api_key

        base = self.PRO_BASE_URL if use_pro_api else self.BASE_URL
        self._client = httpx.AsyncClient(
            base_url=base, headers=headers, timeout=timeout, transport=transport
        )

    async def fetch_snapshot(self) -> list[CachedAsset]:
        """Fetch the top coins by market cap (single API call)."""
        params = CoinGeckoMarketsParams(per_page=self._page_size)
        items = await self._get_markets(params)
        assets = [a for a in (self._asset_from_item(i) for i in items) if a is not None]
        if not assets:
            raise InsufficientDataError(resolved=0, required=1)
        return assets

    async def fetch_single(self, asset_id: str) -> CachedAsset | None:
        """Fetch one coin by CoinGecko ID."""
        coin_id = normalize_crypto_id(asset_id)
        params = CoinGeckoMarketsParams(per_page=1, ids=coin_id)
        items = await self._get_markets(params)
        for item in items:
            if item.id == coin_id:
                return self._asset_from_item(item)
        return None

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _get_markets(self, params: CoinGeckoMarketsParams) -> list[CoinGeckoMarketItem]:
        try:
            response = await self._client.get(
                "/coins/markets", params=params.model_dump(exclude_none=True)
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise UpstreamError(f"CoinGecko request failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamError("CoinGecko returned invalid JSON") from exc

        if not isinstance(payload, list):
            raise UpstreamError("CoinGecko returned an unexpected payload")
        try:
            return [CoinGeckoMarketItem.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise UpstreamError(f"CoinGecko returned malformed rows: {exc}") from exc

    def _asset_from_item(self, item: CoinGeckoMarketItem) -> CachedAsset | None:
        """Build a CachedAsset from a /coins/markets row; None if it has no price."""
        if item.current_price is None or item.current_price <= 0:
            logger.debug("Skipping %s: no usable price", item.id)
            return None
        return CachedAsset(
            id=item.id,
            asset_class=AssetClass.CRYPTO,
            name=item.name,
            symbol=item.symbol.upper(),
            price=float(item.current_price),
            change_24h_pct=round2(item.price_change_percentage_24h),
            market_cap=item.market_cap,
            volume_24h=item.total_volume,
            image_url=item.image,
            last_refreshed_at=utcnow(),
        )
