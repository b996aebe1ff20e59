"""Yahoo Finance equity quote source."""
from market_watch.providers.equity.yfinance.y_finance_source import \
    YFinanceQuoteSource

__all__ = ["YFinanceQuoteSource"]
