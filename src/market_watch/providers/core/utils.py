"""Shared utilities for upstream fetchers."""

DECIMALS = 2


def normalize_equity_symbol(symbol: str) -> str:
    """Normalize a stock ticker (uppercase, trimmed)."""
    return symbol.strip().upper()


def normalize_crypto_id(symbol: str) -> str:
    """Normalize a CoinGecko coin ID (lowercase, trimmed)."""
    return symbol.strip().lower()


def round2(x: float | None) -> float | None:
    """Round a value to 2 decimal places; preserve None."""
    if x is None:
        return None
    return round(float(x), DECIMALS)


def optional_float(x: object) -> float | None:
    """float(x) for numeric payload fields; None for missing or junk values."""
    if x is None or isinstance(x, bool):
        return None
    try:
        return float(x)
    except (TypeError, ValueError):
        return None
