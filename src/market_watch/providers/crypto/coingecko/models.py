"""Models for the CoinGecko fetcher (API params and response rows)."""
from pydantic import BaseModel, ConfigDict


class CoinGeckoMarketsParams(BaseModel):
    """Params for /coins/markets. Set `ids` for a single-coin lookup."""

    vs_currency: str = "usd"
    order: str = "market_cap_desc"
    per_page: int = 250
    page: int = 1
    sparkline: str = "false"
    price_change_percentage: str = "24h"
    ids: str | None = None


class CoinGeckoMarketItem(BaseModel):
    """One row of /coins/markets; unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore")

    id: str
    symbol: str
    name: str
    current_price: float | None = None
    price_change_percentage_24h: float | None = None
    market_cap: float | None = None
    total_volume: float | None = None
    image: str | None = None
