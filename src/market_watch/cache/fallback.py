"""Static datasets served when the cache is empty and upstream is unavailable.

The lists are deterministic and already ordered by market cap (desc), so a
`limit` slice always yields the same assets.
"""
from datetime import datetime, timezone

from market_watch.db import AssetClass
from market_watch.providers.equity.symbols import equity_logo_url
from market_watch.schemas import CachedAsset

# Fixed stamp so fallback rows are recognisably not live.
FALLBACK_REFRESHED_AT = datetime(2024, 1, 1, tzinfo=timezone.utc)

_COINGECKO_IMAGES = "https://assets.coingecko.com/coins/images"

# id, symbol, name, price, change_24h_pct, market_cap, volume_24h, image path
_CRYPTO_ROWS = (
    ("bitcoin", "BTC", "Bitcoin", 43250.00, 2.5, 846e9, 25e9, "1/large/bitcoin.png"),
    ("ethereum", "ETH", "Ethereum", 2280.50, 1.8, 274e9, 12e9, "279/large/ethereum.png"),
    ("tether", "USDT", "Tether", 1.00, 0.01, 91e9, 45e9, "325/large/Tether.png"),
    ("binancecoin", "BNB", "BNB", 312.40, -0.5, 48e9, 1.5e9, "825/large/bnb-icon2_2x.png"),
    ("solana", "SOL", "Solana", 98.75, 3.2, 43e9, 2e9, "4128/large/solana.png"),
)

# symbol, name, price, change_24h_pct, market_cap
_EQUITY_ROWS = (
    ("AAPL", "Apple Inc.", 178.25, 2.34, 2.80e12),
    ("MSFT", "Microsoft Corp.", 378.91, 1.87, 2.81e12),
    ("GOOGL", "Alphabet Inc.", 141.80, -0.45, 1.78e12),
    ("AMZN", "Amazon.com Inc.", 151.94, 1.23, 1.57e12),
    ("META", "Meta Platforms", 484.03, 3.12, 1.23e12),
    ("NVDA", "NVIDIA Corp.", 495.22, 4.67, 1.22e12),
    ("BRK.B", "Berkshire Hathaway", 385.45, 1.12, 850e9),
    ("TSLA", "Tesla Inc.", 242.84, -2.15, 771e9),
    ("LLY", "Eli Lilly", 785.45, 2.67, 745e9),
    ("TSM", "Taiwan Semiconductor", 125.67, 2.34, 650e9),
    ("V", "Visa Inc.", 267.45, 1.34, 550e9),
    ("JPM", "JPMorgan Chase", 158.45, 1.45, 465e9),
    ("UNH", "UnitedHealth Group", 485.90, 1.45, 450e9),
    ("WMT", "Walmart Inc.", 165.90, 1.23, 450e9),
    ("XOM", "Exxon Mobil", 108.90, 1.45, 450e9),
    ("MA", "Mastercard Inc.", 445.78, 1.67, 425e9),
    ("AVGO", "Broadcom Inc.", 865.45, 3.12, 410e9),
    ("JNJ", "Johnson & Johnson", 162.45, 0.67, 395e9),
    ("PG", "Procter & Gamble", 165.78, 0.78, 395e9),
    ("HD", "Home Depot", 345.67, 1.56, 350e9),
)


def _crypto_fallback() -> list[CachedAsset]:
    return [
        CachedAsset(
            id=coin_id,
            asset_class=AssetClass.CRYPTO,
            name=name,
            symbol=symbol,
            price=price,
            change_24h_pct=change,
            market_cap=mcap,
            volume_24h=volume,
            image_url=f"{_COINGECKO_IMAGES}/{image}",
            last_refreshed_at=FALLBACK_REFRESHED_AT,
        )
        for coin_id, symbol, name, price, change, mcap, volume, image in _CRYPTO_ROWS
    ]


def _equity_fallback() -> list[CachedAsset]:
    rows = sorted(_EQUITY_ROWS, key=lambda r: r[4], reverse=True)
    return [
        CachedAsset(
            id=symbol,
            asset_class=AssetClass.EQUITY,
            name=name,
            symbol=symbol,
            price=price,
            change_24h_pct=change,
            market_cap=mcap,
            # No volume offline; estimate 1% of shares outstanding.
            volume_24h=float(int(mcap / price * 0.01)),
            image_url=equity_logo_url(symbol),
            last_refreshed_at=FALLBACK_REFRESHED_AT,
        )
        for symbol, name, price, change, mcap in rows
    ]


_FALLBACKS: dict[AssetClass, list[CachedAsset]] = {
    AssetClass.CRYPTO: _crypto_fallback(),
    AssetClass.EQUITY: _equity_fallback(),
}


def fallback_assets(asset_class: AssetClass) -> list[CachedAsset]:
    """Return a fresh list of the static dataset for the asset class."""
    return list(_FALLBACKS[asset_class])
