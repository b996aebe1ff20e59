"""Equity universe tracked by the ingestion cycle, with display names and logo domains."""

LOGO_BASE_URL = "https://logo.clearbit.com"

# symbol -> (display name, company domain)
EQUITY_UNIVERSE: dict[str, tuple[str, str]] = {
    # Tech
    "AAPL": ("Apple Inc.", "apple.com"),
    "MSFT": ("Microsoft Corp.", "microsoft.com"),
    "GOOGL": ("Alphabet Inc.", "google.com"),
    "AMZN": ("Amazon.com Inc.", "amazon.com"),
    "META": ("Meta Platforms", "meta.com"),
    "NVDA": ("NVIDIA Corp.", "nvidia.com"),
    "TSLA": ("Tesla Inc.", "tesla.com"),
    "NFLX": ("Netflix Inc.", "netflix.com"),
    "ADBE": ("Adobe Inc.", "adobe.com"),
    "CRM": ("Salesforce Inc.", "salesforce.com"),
    "ORCL": ("Oracle Corp.", "oracle.com"),
    "INTC": ("Intel Corp.", "intel.com"),
    "AMD": ("Advanced Micro Devices", "amd.com"),
    "AVGO": ("Broadcom Inc.", "broadcom.com"),
    # Financial
    "JPM": ("JPMorgan Chase", "jpmorganchase.com"),
    "BAC": ("Bank of America", "bankofamerica.com"),
    "GS": ("Goldman Sachs", "goldmansachs.com"),
    "V": ("Visa Inc.", "visa.com"),
    "MA": ("Mastercard Inc.", "mastercard.com"),
    "PYPL": ("PayPal Holdings", "paypal.com"),
    # Healthcare
    "JNJ": ("Johnson & Johnson", "jnj.com"),
    "UNH": ("UnitedHealth Group", "unitedhealthgroup.com"),
    "PFE": ("Pfizer Inc.", "pfizer.com"),
    "LLY": ("Eli Lilly", "lilly.com"),
    "MRK": ("Merck & Co.", "merck.com"),
    # Consumer
    "WMT": ("Walmart Inc.", "walmart.com"),
    "HD": ("Home Depot", "homedepot.com"),
    "KO": ("Coca-Cola Co.", "coca-cola.com"),
    "PEP": ("PepsiCo Inc.", "pepsico.com"),
    "MCD": ("McDonalds Corp.", "mcdonalds.com"),
    "COST": ("Costco Wholesale", "costco.com"),
    "DIS": ("Walt Disney Co.", "disney.com"),
    "PG": ("Procter & Gamble", "pg.com"),
    # Industrial & energy
    "BA": ("Boeing Co.", "boeing.com"),
    "CAT": ("Caterpillar Inc.", "caterpillar.com"),
    "XOM": ("Exxon Mobil", "exxonmobil.com"),
    "CVX": ("Chevron Corp.", "chevron.com"),
    # Other
    "BRK.B": ("Berkshire Hathaway", "berkshirehathaway.com"),
    "TSM": ("Taiwan Semiconductor", "tsmc.com"),
    "ASML": ("ASML Holding", "asml.com"),
}

DEFAULT_EQUITY_SYMBOLS: tuple[str, ...] = tuple(EQUITY_UNIVERSE)


def equity_name(symbol: str) -> str:
    entry = EQUITY_UNIVERSE.get(symbol)
    return entry[0] if entry else symbol


def equity_logo_url(symbol: str) -> str:
    """Clearbit logo for a known symbol; guess from the ticker otherwise."""
    entry = EQUITY_UNIVERSE.get(symbol)
    domain = entry[1] if entry else f"{symbol.lower()}.com"
    return f"{LOGO_BASE_URL}/{domain}"
